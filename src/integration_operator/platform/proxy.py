"""Pod proxy probing over httpx.

Readiness endpoints are not reachable from the operator pod network in
general, so probes go through the API server's pod proxy subresource::

    GET {api_server}/api/v1/namespaces/{ns}/pods/{[https:]name:port}/proxy{path}

Response mapping:

- 2xx → body returned
- 503 → ``ServiceUnavailableError`` carrying the body (health report)
- other status → ``ProbeError`` with the status code in the context
- httpx timeout → ``ProbeTimeoutError``
- other transport failure → ``ProbeError``
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from integration_operator.apis import Pod
from integration_operator.core.errors import (
    ErrorContext,
    ProbeError,
    ProbeTimeoutError,
    ServiceUnavailableError,
)
from integration_operator.core.logging import get_logger
from integration_operator.core.settings import OperatorSettings

logger = get_logger(__name__)


def pod_proxy_path(pod: Pod, port: int | str, path: str, scheme: str = "HTTP") -> str:
    """Build the API server pod proxy path for ``path`` on ``port``."""
    target = f"{pod.name}:{port}"
    if scheme.upper() == "HTTPS":
        target = f"https:{target}"
    if not path.startswith("/"):
        path = "/" + path
    return f"/api/v1/namespaces/{quote(pod.namespace)}/pods/{quote(target, safe=':')}/proxy{path}"


class HttpxProbeProxy:
    """``ProbeProxy`` backed by an ``httpx.AsyncClient`` per call.

    Args:
        base_url: API server URL.
        token: Bearer token, if the API server requires one.
        verify: Verify the API server TLS certificate.
        timeout: Transport-level timeout in seconds. The probe engine applies
            its own deadline on top of this.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        verify: bool = True,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"Accept": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._verify = verify
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: OperatorSettings) -> HttpxProbeProxy:
        return cls(
            settings.api_server_url,
            token=settings.api_token,
            verify=settings.verify_ssl,
        )

    async def proxy_get(self, pod: Pod, port: int | str, path: str, *, scheme: str = "HTTP") -> bytes:
        url = pod_proxy_path(pod, port, path, scheme)
        context = ErrorContext(namespace=pod.namespace, pod=pod.name, url=url)

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                verify=self._verify,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException as exc:
            raise ProbeTimeoutError(f"probe request timed out: {exc}", context=context, cause=exc) from exc
        except httpx.HTTPError as exc:
            raise ProbeError(f"probe request failed: {exc}", context=context, cause=exc) from exc

        context.http_status = response.status_code
        if response.status_code == httpx.codes.SERVICE_UNAVAILABLE:
            raise ServiceUnavailableError(body=response.content, context=context)
        if response.is_error:
            logger.debug("probe.http_error", pod=pod.name, status=response.status_code)
            raise ProbeError(
                f"the server responded with status {response.status_code}",
                context=context,
            )
        return response.content


__all__ = ["HttpxProbeProxy", "pod_proxy_path"]
