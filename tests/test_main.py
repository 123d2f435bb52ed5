"""Tests for settings and application wiring."""

from __future__ import annotations

import ssl
from pathlib import Path
from typing import Any

import httpx
import pytest
from policy_approver.config import Settings
from policy_approver.main import build_app, kube_client


def test_settings_defaults() -> None:
    s = Settings()
    assert s.webhook_port == 6443
    assert s.kube_api_url == "https://kubernetes.default.svc"
    assert s.request_timeout_seconds == 10.0


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEBHOOK_PORT", "9443")
    monkeypatch.setenv("KUBE_API_URL", "https://10.0.0.1:6443")
    s = Settings()
    assert s.webhook_port == 9443
    assert s.kube_api_url == "https://10.0.0.1:6443"


@pytest.mark.asyncio
async def test_kube_client_uses_service_account_token(tmp_path: Path) -> None:
    token = tmp_path / "token"
    token.write_text("secret-token\n")
    config = Settings(
        kube_api_url="https://k8s.example:6443/",
        kube_token_file=str(token),
        kube_ca_file=None,
    )

    client = kube_client(config)
    assert client.headers["Authorization"] == "Bearer secret-token"
    assert str(client.base_url) == "https://k8s.example:6443/"
    await client.aclose()


@pytest.mark.asyncio
async def test_kube_client_without_token(tmp_path: Path) -> None:
    config = Settings(kube_token_file=str(tmp_path / "missing"), kube_ca_file=None)
    client = kube_client(config)
    assert "Authorization" not in client.headers
    await client.aclose()


@pytest.mark.asyncio
async def test_build_app_is_ready(tmp_path: Path) -> None:
    config = Settings(kube_token_file=str(tmp_path / "missing"), kube_ca_file=None)
    app = build_app(config)
    transport = httpx.ASGITransport(app=app)  # type: ignore[arg-type]
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/readyz")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_kube_client_trusts_configured_ca(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ca_file = tmp_path / "ca.crt"
    ca_file.write_text("")
    cafiles: list[str | None] = []
    create_default_context = ssl.create_default_context

    def fake_context(*args: Any, cafile: str | None = None, **kwargs: Any) -> ssl.SSLContext:
        cafiles.append(cafile)
        return create_default_context(*args, **kwargs)

    monkeypatch.setattr("policy_approver.main.ssl.create_default_context", fake_context)
    config = Settings(kube_token_file=str(tmp_path / "missing"), kube_ca_file=str(ca_file))

    client = kube_client(config)
    assert str(ca_file) in cafiles
    await client.aclose()


@pytest.mark.asyncio
async def test_lifespan_closes_client_on_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    client = httpx.AsyncClient()
    monkeypatch.setattr("policy_approver.main.kube_client", lambda _: client)
    app = build_app(Settings(kube_token_file=str(tmp_path / "missing"), kube_ca_file=None))

    with pytest.raises(RuntimeError, match="shutdown"):
        async with app.router.lifespan_context(app):
            raise RuntimeError("shutdown")
    assert client.is_closed
