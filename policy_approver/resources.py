"""Decoding of Kubernetes objects into domain models.

Handles cert-manager ``CertificateRequest`` objects, whose ``spec.request``
carries a base64 encoded PEM certificate signing request, and
``CertificateRequestPolicy`` objects.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from pydantic import ValidationError

from policy_approver.duration import parse_duration
from policy_approver.errors import ResourceDecodeError
from policy_approver.models import (
    IssuerRef,
    KeyAlgorithm,
    Policy,
    PolicySpec,
    SigningRequest,
    UserInfo,
)

READY_CONDITION = "Ready"


def _mapping(value: Any, path: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ResourceDecodeError(f"{path} must be an object, got {type(value).__name__}")
    return value


def is_ready(obj: dict[str, Any]) -> bool:
    """Return True if the object has a ``Ready`` condition with status True."""
    conditions = (obj.get("status") or {}).get("conditions") or []
    return any(
        c.get("type") == READY_CONDITION and c.get("status") == "True" for c in conditions
    )


def policy_from_resource(obj: dict[str, Any]) -> Policy:
    """Decode a CertificateRequestPolicy object."""
    name = (obj.get("metadata") or {}).get("name")
    if not name:
        raise ResourceDecodeError("CertificateRequestPolicy has no metadata.name")
    try:
        spec = PolicySpec.model_validate(obj.get("spec") or {})
    except ValidationError as exc:
        raise ResourceDecodeError(f"invalid spec in CertificateRequestPolicy '{name}': {exc}") from exc
    return Policy(name=name, spec=spec, ready=is_ready(obj))


def load_csr(request: str | bytes) -> x509.CertificateSigningRequest:
    """Load a CSR from its base64 encoded PEM form (or raw PEM)."""
    raw = request.encode() if isinstance(request, str) else request
    if b"-----BEGIN" not in raw:
        try:
            raw = base64.b64decode(raw, validate=True)
        except binascii.Error as exc:
            raise ResourceDecodeError("spec.request is not valid base64") from exc
    try:
        return x509.load_pem_x509_csr(raw)
    except ValueError as exc:
        raise ResourceDecodeError(f"spec.request is not a valid PEM CSR: {exc}") from exc


def _key_attributes(csr: x509.CertificateSigningRequest) -> tuple[KeyAlgorithm | None, int | None]:
    key = csr.public_key()
    if isinstance(key, rsa.RSAPublicKey):
        return KeyAlgorithm.RSA, key.key_size
    if isinstance(key, ec.EllipticCurvePublicKey):
        return KeyAlgorithm.ECDSA, key.curve.key_size
    if isinstance(key, ed25519.Ed25519PublicKey):
        return KeyAlgorithm.ED25519, None
    return None, None


def csr_attributes(csr: x509.CertificateSigningRequest) -> dict[str, Any]:
    """Extract the fields policies constrain from a parsed CSR."""
    common_names = csr.subject.get_attributes_for_oid(x509.NameOID.COMMON_NAME)
    common_name = str(common_names[0].value) if common_names else ""

    dns_names: list[str] = []
    ip_addresses: list[str] = []
    uris: list[str] = []
    try:
        san = csr.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        pass
    else:
        dns_names = san.get_values_for_type(x509.DNSName)
        ip_addresses = [str(ip) for ip in san.get_values_for_type(x509.IPAddress)]
        uris = san.get_values_for_type(x509.UniformResourceIdentifier)

    key_algorithm, key_size = _key_attributes(csr)
    return {
        "common_name": common_name,
        "dns_names": dns_names,
        "ip_addresses": ip_addresses,
        "uris": uris,
        "key_algorithm": key_algorithm,
        "key_size": key_size,
    }


def request_from_resource(obj: Any) -> SigningRequest:
    """Decode a CertificateRequest object into a SigningRequest."""
    obj = _mapping(obj, "object")
    metadata = _mapping(obj.get("metadata"), "metadata")
    spec = _mapping(obj.get("spec"), "spec")

    if not spec.get("request"):
        raise ResourceDecodeError("CertificateRequest has no spec.request")
    if not isinstance(spec["request"], str):
        raise ResourceDecodeError("spec.request must be a string")
    csr = load_csr(spec["request"])
    try:
        attributes = csr_attributes(csr)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise ResourceDecodeError(f"spec.request has an unreadable CSR: {exc}") from exc

    duration = None
    if spec.get("duration"):
        if not isinstance(spec["duration"], str):
            raise ResourceDecodeError("invalid spec.duration: must be a string")
        try:
            duration = parse_duration(spec["duration"])
        except ValueError as exc:
            raise ResourceDecodeError(f"invalid spec.duration: {exc}") from exc

    issuer_ref = _mapping(spec.get("issuerRef"), "spec.issuerRef")
    try:
        return SigningRequest(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            duration=duration,
            is_ca=spec.get("isCA", False),
            issuer_ref=IssuerRef(
                name=issuer_ref.get("name", ""),
                kind=issuer_ref.get("kind", ""),
                group=issuer_ref.get("group", ""),
            ),
            user=UserInfo(
                username=spec.get("username", ""),
                groups=spec.get("groups") or [],
                uid=spec.get("uid", ""),
                extra=spec.get("extra") or {},
            ),
            **attributes,
        )
    except ValidationError as exc:
        raise ResourceDecodeError(f"invalid CertificateRequest: {exc}") from exc
