"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

_SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


class Settings(BaseSettings):
    """Policy approver configuration.

    All settings can be overridden via environment variables
    (e.g., WEBHOOK_PORT, KUBE_API_URL).
    """

    # Webhook server
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 6443
    webhook_tls_cert_file: str | None = None
    webhook_tls_key_file: str | None = None
    log_level: str = "info"

    # Kubernetes API
    kube_api_url: str = "https://kubernetes.default.svc"
    kube_token_file: str = f"{_SERVICE_ACCOUNT_DIR}/token"
    kube_ca_file: str | None = f"{_SERVICE_ACCOUNT_DIR}/ca.crt"
    request_timeout_seconds: float = 10.0

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()
