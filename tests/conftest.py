"""Shared fixtures: certificate signing requests and CertificateRequest objects."""

from __future__ import annotations

import base64
import ipaddress
from typing import Any

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa


def build_csr(
    common_name: str = "test",
    dns_names: list[str] | None = None,
    ip_addresses: list[str] | None = None,
    uris: list[str] | None = None,
    key: Any = None,
) -> str:
    """Return a base64 encoded PEM CSR, as found in CertificateRequest.spec.request."""
    if key is None:
        key = ec.generate_private_key(ec.SECP256R1())

    builder = x509.CertificateSigningRequestBuilder().subject_name(
        x509.Name([x509.NameAttribute(x509.NameOID.COMMON_NAME, common_name)])
    )
    sans: list[x509.GeneralName] = [x509.DNSName(d) for d in dns_names or []]
    sans += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in ip_addresses or []]
    sans += [x509.UniformResourceIdentifier(u) for u in uris or []]
    if sans:
        builder = builder.add_extension(x509.SubjectAlternativeName(sans), critical=False)

    algorithm = None if isinstance(key, ed25519.Ed25519PrivateKey) else hashes.SHA256()
    csr = builder.sign(key, algorithm)
    return base64.b64encode(csr.public_bytes(serialization.Encoding.PEM)).decode()


def certificate_request(request: str, **spec: Any) -> dict[str, Any]:
    """Build a cert-manager CertificateRequest object around a CSR."""
    return {
        "apiVersion": "cert-manager.io/v1",
        "kind": "CertificateRequest",
        "metadata": {"name": "my-request", "namespace": "sandbox"},
        "spec": {
            "request": request,
            "issuerRef": {"name": "my-issuer", "kind": "Issuer", "group": "cert-manager.io"},
            "username": "alice",
            "groups": ["system:authenticated"],
            "uid": "1234",
            **spec,
        },
    }


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def csr() -> str:
    return build_csr(
        common_name="test",
        dns_names=["foo.bar", "example.com"],
        ip_addresses=["1.2.3.4"],
        uris=["spiffe://cluster.local/ns/sandbox/sa/app"],
    )
