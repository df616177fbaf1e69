"""Platform access: client contracts, selectors, and implementations."""

from integration_operator.platform.client import (
    LabelSelector,
    PlatformClient,
    ProbeCall,
    ProbeProxy,
    Requirement,
    SelectorOperator,
)
from integration_operator.platform.memory import InMemoryPlatformClient, StaticProbeProxy
from integration_operator.platform.proxy import HttpxProbeProxy, pod_proxy_path

__all__ = [
    "LabelSelector",
    "PlatformClient",
    "ProbeCall",
    "ProbeProxy",
    "Requirement",
    "SelectorOperator",
    "InMemoryPlatformClient",
    "StaticProbeProxy",
    "HttpxProbeProxy",
    "pod_proxy_path",
]
