"""
Structured error types for the integration operator.

Every failure the reconciliation core can raise is an ``OperatorError``. The
error carries the same metadata regardless of where it is raised so the
caller (the work-queue dispatcher that re-invokes a pass) can decide whether
to requeue, and so status messages and logs stay consistent.

Each OperatorError carries:
- **Category:** which family of failure (platform, probe, config, pipeline)
- **Reason:** a short machine-readable reason, reused as a condition reason
- **Retryable:** whether re-running the whole pass may succeed
- **Context:** integration, namespace, kit, pod, trait and HTTP metadata
- **Cause:** the chained underlying exception

Manifesto:
    - **Failure is status:** declared unhealthy states never raise, they are
      recorded on the Integration. Only genuine faults become exceptions.
    - **Explicit retry semantics:** transient platform and probe errors are
      retryable, configuration and pipeline errors are not.
    - **Error chaining:** wrap, never swallow. ``cause=`` keeps the root.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        OperatorError                             │
        │       (reason, category, retryable, context, cause)              │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  TransientError          ConfigError            PipelineError    │
        │  (retryable=True)        (CONFIG)               (PIPELINE)       │
        │       │                       │                      │           │
        │  PlatformAPIError        MissingKitError        TraitError       │
        │  ProbeError              KitNotFoundError                        │
        │    ProbeTimeoutError     PlatformNotFoundError                   │
        │    ServiceUnavailable    UnsupportedControllerError              │
        │                          ControllerNotFoundError                 │
        │  ValidationError         InvalidPriorityLabelError               │
        │  (VALIDATION)            IntegrationContainerNotFoundError       │
        │       │                  TraitCatalogError                       │
        │  HealthCheckParseError                                           │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = MissingKitError("my-integration")
    >>> error.retryable
    False
    >>> error.category.value
    'CONFIG'

    >>> error = PlatformAPIError("list pods failed").with_context(namespace="ns")
    >>> error.context.namespace
    'ns'

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context,
    integration-operator, reconciliation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories used for classification and requeue decisions.

    Attributes:
        PLATFORM: Object store / API failures (list, get)
        PROBE: HTTP readiness probe failures
        CONFIG: Missing or inconsistent configuration
        PIPELINE: Trait pipeline failures
        VALIDATION: Malformed payloads
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    PLATFORM = "PLATFORM"
    PROBE = "PROBE"
    CONFIG = "CONFIG"
    PIPELINE = "PIPELINE"
    VALIDATION = "VALIDATION"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error for logging.

    Only fields that are set are serialized by ``to_dict()``.

    Attributes:
        integration: Integration name
        namespace: Integration namespace
        kit: Integration kit name
        pod: Pod name
        trait: Trait id
        url: URL being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    integration: str | None = None
    namespace: str | None = None
    kit: str | None = None
    pod: str | None = None
    trait: str | None = None
    url: str | None = None
    http_status: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["integration", "namespace", "kit", "pod", "trait", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class OperatorError(Exception):
    """
    Base exception for all reconciliation errors.

    Subclasses set ``default_category``, ``default_reason`` and
    ``default_retryable``. The ``reason`` is a CamelCase token that can be
    used directly as an Integration condition reason.

    Examples:
        >>> error = OperatorError("boom", reason="Unexpected")
        >>> error.to_dict()["reason"]
        'Unexpected'

        >>> try:
        ...     raise ConnectionError("refused")
        ... except ConnectionError as e:
        ...     error = PlatformAPIError("list pods failed", cause=e)
        >>> error.cause
        ConnectionError('refused')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_reason: str = "Error"
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        reason: str | None = None,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> OperatorError:
        """
        Add context to this error (fluent API).

        Usage:
            raise KitNotFoundError("ns", "kit-1").with_context(integration="my-it")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "reason": self.reason,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, reason={self.reason})"


# =============================================================================
# TRANSIENT ERRORS (retryable by re-running the pass)
# =============================================================================


class TransientError(OperatorError):
    """Temporary error that may succeed when the pass is re-run."""

    default_category = ErrorCategory.PLATFORM
    default_retryable = True


class PlatformAPIError(TransientError):
    """A get/list call against the platform object store failed."""

    default_category = ErrorCategory.PLATFORM
    default_reason = "PlatformUnavailable"


class ProbeError(TransientError):
    """The proxied HTTP readiness probe failed."""

    default_category = ErrorCategory.PROBE
    default_reason = "ProbeFailed"


class ProbeTimeoutError(ProbeError):
    """The proxied HTTP readiness probe exceeded its deadline."""

    default_reason = "ProbeTimeout"


class ServiceUnavailableError(ProbeError):
    """
    The probed endpoint answered HTTP 503.

    The response body is kept: a 503 from a readiness endpoint carries the
    structured health report describing which checks are down.
    """

    default_reason = "ServiceUnavailable"

    def __init__(self, message: str = "Service Unavailable", *, body: bytes = b"", **kwargs: Any):
        kwargs.setdefault("context", ErrorContext(http_status=503))
        super().__init__(message, **kwargs)
        self.body = body


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(OperatorError):
    """Malformed input data."""

    default_category = ErrorCategory.VALIDATION
    default_reason = "Invalid"


class HealthCheckParseError(ValidationError):
    """A 503 readiness body could not be parsed as a health report."""

    default_reason = "InvalidHealthCheck"


# =============================================================================
# CONFIGURATION ERRORS (never retryable)
# =============================================================================


class ConfigError(OperatorError):
    """Configuration is missing or inconsistent."""

    default_category = ErrorCategory.CONFIG
    default_reason = "ConfigurationError"


class MissingKitError(ConfigError):
    """The Integration has no kit reference where one is required."""

    default_reason = "IntegrationKitMissing"

    def __init__(self, integration: str, **kwargs: Any):
        super().__init__(f"no kit set on integration {integration}", **kwargs)
        self.context.integration = integration


class KitNotFoundError(ConfigError):
    """The referenced kit could not be retrieved."""

    default_reason = "IntegrationKitNotFound"

    def __init__(self, namespace: str, name: str, **kwargs: Any):
        super().__init__(f"unable to find integration kit {namespace}/{name}", **kwargs)
        self.context.namespace = namespace
        self.context.kit = name


class PlatformNotFoundError(ConfigError):
    """No integration platform is registered for the namespace."""

    default_reason = "PlatformNotFound"

    def __init__(self, namespace: str, **kwargs: Any):
        super().__init__(f"no integration platform available for namespace {namespace}", **kwargs)
        self.context.namespace = namespace


class UnsupportedControllerError(ConfigError):
    """No supported workload kind is marked available on the Integration."""

    default_reason = "UnsupportedController"

    def __init__(self, integration: str, **kwargs: Any):
        super().__init__(f"unsupported controller for integration {integration}", **kwargs)
        self.context.integration = integration


class ControllerNotFoundError(ConfigError):
    """The trait pass produced no workload object of the expected kind."""

    default_reason = "ControllerNotFound"

    def __init__(self, integration: str, kind: str, **kwargs: Any):
        super().__init__(f"unable to retrieve {kind} controller for integration {integration}", **kwargs)
        self.context.integration = integration
        self.kind = kind


class InvalidPriorityLabelError(ConfigError):
    """A kit carries a priority label that is not an integer."""

    default_reason = "InvalidKitPriority"

    def __init__(self, kit: str, value: str | None, **kwargs: Any):
        super().__init__(f"invalid priority label {value!r} on integration kit {kit}", **kwargs)
        self.context.kit = kit
        self.value = value


class IntegrationContainerNotFoundError(ConfigError):
    """The pod does not run a container with the integration container name."""

    default_reason = "IntegrationContainerNotFound"

    def __init__(self, namespace: str, pod: str, **kwargs: Any):
        super().__init__(f"integration container not found in Pod {namespace}/{pod}", **kwargs)
        self.context.namespace = namespace
        self.context.pod = pod


class TraitCatalogError(ConfigError):
    """The trait catalog definition is inconsistent (duplicates, unknown dependency, cycle)."""

    default_reason = "InvalidTraitCatalog"


# =============================================================================
# PIPELINE ERRORS
# =============================================================================


class PipelineError(OperatorError):
    """The trait pipeline could not materialize the desired resources."""

    default_category = ErrorCategory.PIPELINE
    default_reason = "InitializationFailed"


class TraitError(PipelineError):
    """A single trait failed while being applied."""

    def __init__(self, trait: str, message: str, **kwargs: Any):
        super().__init__(f"{trait}: {message}", **kwargs)
        self.context.trait = trait
        self.trait = trait


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if re-running the pass may resolve the error."""
    if isinstance(error, OperatorError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, OperatorError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.PLATFORM
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "OperatorError",
    # Transient
    "TransientError",
    "PlatformAPIError",
    "ProbeError",
    "ProbeTimeoutError",
    "ServiceUnavailableError",
    # Validation
    "ValidationError",
    "HealthCheckParseError",
    # Config
    "ConfigError",
    "MissingKitError",
    "KitNotFoundError",
    "PlatformNotFoundError",
    "UnsupportedControllerError",
    "ControllerNotFoundError",
    "InvalidPriorityLabelError",
    "IntegrationContainerNotFoundError",
    "TraitCatalogError",
    # Pipeline
    "PipelineError",
    "TraitError",
    # Utilities
    "is_retryable",
    "categorize_error",
]
