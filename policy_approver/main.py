"""Policy approver entry point."""

from __future__ import annotations

import logging
import ssl
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import uvicorn

from policy_approver.authz import SubjectAccessReviewOracle
from policy_approver.config import Settings, settings
from policy_approver.lister import KubernetesPolicyLister
from policy_approver.manager import Manager
from policy_approver.registry import default_registry
from policy_approver.webhook import Validator, create_app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def kube_client(config: Settings) -> httpx.AsyncClient:
    """HTTP client for the Kubernetes API using the service account token."""
    headers: dict[str, str] = {}
    token_file = Path(config.kube_token_file)
    if token_file.is_file():
        headers["Authorization"] = f"Bearer {token_file.read_text().strip()}"
    else:
        logger.warning("No service account token at %s", token_file)

    verify: ssl.SSLContext | bool = True
    if config.kube_ca_file and Path(config.kube_ca_file).is_file():
        verify = ssl.create_default_context(cafile=config.kube_ca_file)

    return httpx.AsyncClient(
        base_url=config.kube_api_url.rstrip("/"),
        headers=headers,
        verify=verify,
        timeout=config.request_timeout_seconds,
    )


def build_app(config: Settings) -> FastAPI:
    """Wire registry, collaborators, manager and webhook together."""
    registry = default_registry()
    logger.info("Registered evaluators: %s", ", ".join(registry.names()))

    client = kube_client(config)
    timeout = config.request_timeout_seconds
    manager = Manager(
        lister=KubernetesPolicyLister(client, timeout=timeout),
        oracle=SubjectAccessReviewOracle(client, timeout=timeout),
        registry=registry,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await client.aclose()

    return create_app(Validator(manager, registry), lifespan=lifespan)


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting policy approver on %s:%d", settings.webhook_host, settings.webhook_port)

    uvicorn.run(
        build_app(settings),
        host=settings.webhook_host,
        port=settings.webhook_port,
        log_level=settings.log_level,
        ssl_certfile=settings.webhook_tls_cert_file,
        ssl_keyfile=settings.webhook_tls_key_file,
    )


if __name__ == "__main__":
    main()
