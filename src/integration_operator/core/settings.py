"""Operator settings.

Configuration is environment-driven and validated at startup. Every field
can be set with an ``INTEGRATION_OPERATOR_`` prefixed environment variable
or in a ``.env`` file.

Fields
──────
operator_id                 : Operator id assumed for Integrations without one (platform selection)
operator_namespace          : Namespace holding the global integration platform
operator_version            : Mixed into every Integration digest
integration_container_name  : Default name of the integration container
probe_timeout_seconds       : Deadline for a proxied readiness probe
api_server_url              : Platform API server used by the pod proxy
api_token                   : Bearer token for the API server
verify_ssl                  : Verify the API server certificate
log_level / log_json        : structlog configuration

Examples:
    >>> from integration_operator.core.settings import OperatorSettings
    >>> OperatorSettings(operator_id="camel-a").operator_id
    'camel-a'
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OperatorSettings(BaseSettings):
    """Settings shared by the trait pipeline and the monitor action."""

    model_config = SettingsConfigDict(
        env_prefix="INTEGRATION_OPERATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Identity ─────────────────────────────────────────────────
    operator_id: str = ""
    operator_namespace: str = "default"
    operator_version: str = "0.1.0"

    # ── Runtime ──────────────────────────────────────────────────
    integration_container_name: str = "integration"
    probe_timeout_seconds: float = Field(default=1.0, gt=0)

    # ── Platform API ─────────────────────────────────────────────
    api_server_url: str = "https://kubernetes.default.svc"
    api_token: str | None = None
    verify_ssl: bool = True

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None


@lru_cache(maxsize=1)
def get_settings() -> OperatorSettings:
    """Return the process-wide settings (read once from the environment)."""
    return OperatorSettings()


__all__ = ["OperatorSettings", "get_settings"]
