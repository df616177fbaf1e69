"""In-process platform doubles.

``InMemoryPlatformClient`` is a dictionary-backed object store implementing
``PlatformClient``; ``StaticProbeProxy`` answers proxied readiness probes
from scripted responses. Both are used by the test suite and for running a
monitor pass locally without a cluster.

Example::

    client = InMemoryPlatformClient()
    client.add(platform, kit, integration, pod)
    client.fail(Pod, PlatformAPIError("apiserver down"))   # inject a fault

    prober = StaticProbeProxy()
    prober.respond("pod-1", ServiceUnavailableError(body=b'{"status": "DOWN"}'))
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable, Mapping
from typing import TypeVar

from integration_operator.apis import Pod, Resource
from integration_operator.core.errors import ProbeError
from integration_operator.platform.client import (
    LabelSelector,
    ProbeCall,
    as_selector,
    field_value,
)

R = TypeVar("R", bound=Resource)


class InMemoryPlatformClient:
    """Dictionary-backed ``PlatformClient``.

    Objects are stored as deep copies and returned as deep copies, so callers
    can mutate what they read without affecting the store. Every ``add``
    bumps the object's resource version.
    """

    def __init__(self) -> None:
        self._objects: dict[tuple[str, str, str], Resource] = {}
        self._faults: dict[str, Exception] = {}
        self._versions = itertools.count(1)

    # ------------------------------------------------------------------
    # Store management
    # ------------------------------------------------------------------

    def add(self, *objects: Resource) -> None:
        for obj in objects:
            stored = obj.model_copy(deep=True)
            stored.metadata.resource_version = str(next(self._versions))
            self._objects[(type(obj).kind, obj.namespace, obj.name)] = stored

    def delete(self, obj: Resource) -> bool:
        return self._objects.pop((type(obj).kind, obj.namespace, obj.name), None) is not None

    def fail(self, model: type[Resource], error: Exception) -> None:
        """Make every subsequent get/list of ``model`` raise ``error``."""
        self._faults[model.kind] = error

    def heal(self, model: type[Resource] | None = None) -> None:
        if model is None:
            self._faults.clear()
        else:
            self._faults.pop(model.kind, None)

    def _check_fault(self, model: type[Resource]) -> None:
        error = self._faults.get(model.kind)
        if error is not None:
            raise error

    # ------------------------------------------------------------------
    # PlatformClient
    # ------------------------------------------------------------------

    async def get(self, model: type[R], namespace: str, name: str) -> R | None:
        self._check_fault(model)
        obj = self._objects.get((model.kind, namespace, name))
        if obj is None:
            return None
        return obj.model_copy(deep=True)

    async def list(
        self,
        model: type[R],
        namespace: str,
        *,
        labels: LabelSelector | Mapping[str, str] | None = None,
        fields: Mapping[str, str] | None = None,
    ) -> list[R]:
        self._check_fault(model)
        selector = as_selector(labels)
        result = []
        for (kind, obj_namespace, _), obj in self._objects.items():
            if kind != model.kind or obj_namespace != namespace:
                continue
            if not selector.matches(obj.labels):
                continue
            if fields and any(field_value(obj, path) != value for path, value in fields.items()):
                continue
            result.append(obj.model_copy(deep=True))
        return result

    async def lookup_resource_version(self, model: type[Resource], namespace: str, name: str) -> str:
        obj = await self.get(model, namespace, name)
        if obj is None:
            return ""
        return obj.metadata.resource_version


ProbeResponse = bytes | Exception | Callable[[ProbeCall], bytes]


class StaticProbeProxy:
    """Scripted ``ProbeProxy``.

    Responses are registered per pod name. A response is either the body to
    return, an exception to raise, or a callable receiving the ``ProbeCall``.
    Pods without a scripted response answer with ``default``.

    Parameters
    ----------
    default
        Response for pods with no scripted entry (empty body by default).
    delay
        Seconds to sleep before answering, to exercise probe deadlines.
    """

    def __init__(self, default: ProbeResponse = b"", *, delay: float = 0.0) -> None:
        self._default = default
        self._responses: dict[str, ProbeResponse] = {}
        self.delay = delay
        self.calls: list[ProbeCall] = []

    def respond(self, pod_name: str, response: ProbeResponse) -> None:
        self._responses[pod_name] = response

    async def proxy_get(self, pod: Pod, port: int | str, path: str, *, scheme: str = "HTTP") -> bytes:
        call = ProbeCall(pod=pod.name, namespace=pod.namespace, port=port, path=path, scheme=scheme)
        self.calls.append(call)
        if self.delay:
            await asyncio.sleep(self.delay)

        response = self._responses.get(pod.name, self._default)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(call)
        if not isinstance(response, bytes):
            raise ProbeError(f"unsupported scripted response for Pod {pod.namespace}/{pod.name}")
        return response


__all__ = ["InMemoryPlatformClient", "StaticProbeProxy", "ProbeResponse"]
