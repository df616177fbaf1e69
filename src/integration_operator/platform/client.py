"""Platform client contracts.

The reconciliation core never talks to the orchestration platform directly.
It reaches the object store through ``PlatformClient`` and the pod HTTP
proxy through ``ProbeProxy``; both are protocols so the real API client, the
in-memory client used by tests, and any caching layer are interchangeable.

Architecture:

    .. code-block:: text

        ┌───────────────────────┐        ┌────────────────────────┐
        │    PlatformClient     │        │       ProbeProxy       │
        │  get(model, ns, name) │        │ proxy_get(pod, port,   │
        │  list(model, ns,      │        │           path)        │
        │       labels, fields) │        │  → body bytes          │
        │  lookup_resource_     │        │  ✗ ServiceUnavailable  │
        │       version(...)    │        │  ✗ ProbeError          │
        └──────────┬────────────┘        └───────────┬────────────┘
                   │                                  │
        InMemoryPlatformClient              HttpxProbeProxy
                                            StaticProbeProxy

Implementations must be safe for concurrent use: passes for different
Integrations run concurrently and share one client.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable

from integration_operator.apis import Pod, Resource

R = TypeVar("R", bound=Resource)


# ── Label selectors ──────────────────────────────────────────────────────


class SelectorOperator(str, Enum):
    IN = "in"
    NOT_IN = "notin"
    EXISTS = "exists"
    DOES_NOT_EXIST = "!"
    GREATER_THAN = "gt"
    LESS_THAN = "lt"


@dataclass(frozen=True)
class Requirement:
    """A single set-based label requirement (``key in (a,b)``, ``key>5``, ...)."""

    key: str
    operator: SelectorOperator
    values: tuple[str, ...] = ()

    def matches(self, labels: Mapping[str, str]) -> bool:
        present = self.key in labels
        value = labels.get(self.key)

        if self.operator is SelectorOperator.IN:
            return present and value in self.values
        if self.operator is SelectorOperator.NOT_IN:
            return not present or value not in self.values
        if self.operator is SelectorOperator.EXISTS:
            return present
        if self.operator is SelectorOperator.DOES_NOT_EXIST:
            return not present

        # gt / lt compare integers; a missing or non-integer label never matches
        if not present:
            return False
        try:
            actual = int(value)
            bound = int(self.values[0])
        except (TypeError, ValueError, IndexError):
            return False
        if self.operator is SelectorOperator.GREATER_THAN:
            return actual > bound
        return actual < bound

    def __str__(self) -> str:
        if self.operator is SelectorOperator.EXISTS:
            return self.key
        if self.operator is SelectorOperator.DOES_NOT_EXIST:
            return f"!{self.key}"
        if self.operator is SelectorOperator.GREATER_THAN:
            return f"{self.key}>{self.values[0]}"
        if self.operator is SelectorOperator.LESS_THAN:
            return f"{self.key}<{self.values[0]}"
        return f"{self.key} {self.operator.value} ({','.join(self.values)})"


@dataclass(frozen=True)
class LabelSelector:
    """Equality labels plus set-based requirements, all of which must match.

    Example:
        >>> selector = LabelSelector.of({"app": "x"}).add(
        ...     Requirement("priority", SelectorOperator.GREATER_THAN, ("0",))
        ... )
        >>> selector.matches({"app": "x", "priority": "5"})
        True
        >>> str(selector)
        'app=x,priority>0'
    """

    match_labels: tuple[tuple[str, str], ...] = ()
    requirements: tuple[Requirement, ...] = ()

    @classmethod
    def of(cls, labels: Mapping[str, str] | None = None, *requirements: Requirement) -> LabelSelector:
        return cls(tuple(sorted((labels or {}).items())), tuple(requirements))

    def add(self, *requirements: Requirement) -> LabelSelector:
        return LabelSelector(self.match_labels, self.requirements + tuple(requirements))

    def matches(self, labels: Mapping[str, str]) -> bool:
        for key, value in self.match_labels:
            if labels.get(key) != value:
                return False
        return all(requirement.matches(labels) for requirement in self.requirements)

    def __str__(self) -> str:
        parts = [f"{key}={value}" for key, value in self.match_labels]
        parts.extend(str(requirement) for requirement in self.requirements)
        return ",".join(parts)


def as_selector(labels: LabelSelector | Mapping[str, str] | None) -> LabelSelector:
    if isinstance(labels, LabelSelector):
        return labels
    return LabelSelector.of(labels)


def field_value(obj: Any, path: str) -> Any:
    """Resolve a dotted field path (``status.phase``) on a model."""
    value = obj
    for part in path.split("."):
        value = getattr(value, part, None)
        if value is None:
            return None
    if isinstance(value, Enum):
        return value.value
    return value


# ── Contracts ────────────────────────────────────────────────────────────


@runtime_checkable
class PlatformClient(Protocol):
    """Read access to the platform object store."""

    async def get(self, model: type[R], namespace: str, name: str) -> R | None:
        """Return the named object, or None when it does not exist."""
        ...

    async def list(
        self,
        model: type[R],
        namespace: str,
        *,
        labels: LabelSelector | Mapping[str, str] | None = None,
        fields: Mapping[str, str] | None = None,
    ) -> list[R]:
        """List objects of ``model`` matching label and field selectors."""
        ...

    async def lookup_resource_version(self, model: type[Resource], namespace: str, name: str) -> str:
        """Return the object's resource version, or ``""`` when it does not exist."""
        ...


@runtime_checkable
class ProbeProxy(Protocol):
    """HTTP GET against a pod through the platform's pod proxy."""

    async def proxy_get(self, pod: Pod, port: int | str, path: str, *, scheme: str = "HTTP") -> bytes:
        """Return the response body.

        Raises:
            ServiceUnavailableError: the endpoint answered 503 (body attached)
            ProbeTimeoutError: the call exceeded its deadline
            ProbeError: any other transport or HTTP failure
        """
        ...


@dataclass
class ProbeCall:
    """Record of one proxied probe call (used by test doubles)."""

    pod: str
    namespace: str
    port: int | str
    path: str
    scheme: str = "HTTP"


__all__ = [
    "SelectorOperator",
    "Requirement",
    "LabelSelector",
    "as_selector",
    "field_value",
    "PlatformClient",
    "ProbeProxy",
    "ProbeCall",
]
