"""Domain models for certificate request policy evaluation."""

from __future__ import annotations

import json
from datetime import timedelta
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from policy_approver.duration import parse_duration


class KeyAlgorithm(StrEnum):
    """Private key algorithms a certificate request may use."""

    RSA = "RSA"
    ECDSA = "ECDSA"
    ED25519 = "Ed25519"


class EvaluationResult(StrEnum):
    """Outcome of a single evaluator run against a single policy."""

    NOT_DENIED = "NotDenied"
    DENIED = "Denied"


class ReviewResult(StrEnum):
    """Final verdict of a review."""

    APPROVED = "Approved"
    DENIED = "Denied"
    UNPROCESSED = "Unprocessed"


# ── Request ──────────────────────────────────────────────────────


class IssuerRef(BaseModel):
    """Reference to the issuer that would sign the request."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    kind: str = ""
    group: str = ""


class UserInfo(BaseModel):
    """Identity of the user or service account that created the request."""

    model_config = ConfigDict(frozen=True)

    username: str = ""
    groups: list[str] = []
    uid: str = ""
    extra: dict[str, list[str]] = {}


class SigningRequest(BaseModel):
    """A certificate signing request under evaluation."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    namespace: str = ""
    common_name: str = ""
    dns_names: list[str] = []
    ip_addresses: list[str] = []
    uris: list[str] = []
    duration: timedelta | None = None
    is_ca: bool = Field(default=False, strict=True)
    key_algorithm: KeyAlgorithm | None = None
    key_size: int | None = None
    issuer_ref: IssuerRef = IssuerRef()
    user: UserInfo = UserInfo()


# ── Policy ───────────────────────────────────────────────────────


class IssuerRefPattern(BaseModel):
    """Wildcard patterns over an issuer reference. Unset fields match anything."""

    name: str | None = None
    kind: str | None = None
    group: str | None = None

    def __str__(self) -> str:
        return "{name=%s kind=%s group=%s}" % (
            self.name if self.name is not None else "*",
            self.kind if self.kind is not None else "*",
            self.group if self.group is not None else "*",
        )


class PrivateKeyConstraints(BaseModel):
    """Constraints on the private key of a request."""

    model_config = ConfigDict(populate_by_name=True)

    allowed_algorithm: KeyAlgorithm | None = Field(default=None, alias="allowedAlgorithm")
    min_size: int | None = Field(default=None, alias="minSize")
    max_size: int | None = Field(default=None, alias="maxSize")


class PolicySpec(BaseModel):
    """Constraints of a CertificateRequestPolicy.

    ``None`` means the field is unconstrained. An empty list is a
    constraint that allows nothing.
    """

    model_config = ConfigDict(populate_by_name=True)

    allowed_common_name: str | None = Field(default=None, alias="allowedCommonName")
    allowed_dns_names: list[str] | None = Field(default=None, alias="allowedDNSNames")
    allowed_ip_addresses: list[str] | None = Field(default=None, alias="allowedIPAddresses")
    allowed_uris: list[str] | None = Field(default=None, alias="allowedURIs")
    min_duration: timedelta | None = Field(default=None, alias="minDuration")
    allowed_is_ca: bool | None = Field(default=None, alias="allowedIsCA")
    allowed_private_key: PrivateKeyConstraints | None = Field(
        default=None, alias="allowedPrivateKey"
    )
    allowed_issuers: list[IssuerRefPattern] | None = Field(
        default=None, alias="allowedIssuers"
    )
    issuer_ref_selector: IssuerRefPattern | None = Field(
        default=None, alias="issuerRefSelector"
    )

    @field_validator("min_duration", mode="before")
    @classmethod
    def _parse_go_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value


class Policy(BaseModel):
    """A named, cluster scoped CertificateRequestPolicy."""

    name: str
    spec: PolicySpec = Field(default_factory=PolicySpec)
    ready: bool = False


# ── Responses ────────────────────────────────────────────────────


class Violation(BaseModel):
    """A single request field that failed a policy constraint."""

    field: str
    value: Any = None
    allowed: str

    def __str__(self) -> str:
        return f"{self.field}: Invalid value: {json.dumps(self.value, default=str)}: {self.allowed}"


class EvaluationResponse(BaseModel):
    """Result of one evaluator against one policy for one request."""

    result: EvaluationResult
    message: str = ""
    violations: list[Violation] = []

    @classmethod
    def not_denied(cls) -> EvaluationResponse:
        return cls(result=EvaluationResult.NOT_DENIED)

    @classmethod
    def denied(cls, violations: list[Violation]) -> EvaluationResponse:
        """Build a denial listing every violation in the given order."""
        message = "[" + ", ".join(str(v) for v in violations) + "]"
        return cls(result=EvaluationResult.DENIED, message=message, violations=violations)

    @property
    def is_denied(self) -> bool:
        return self.result == EvaluationResult.DENIED


class ReviewResponse(BaseModel):
    """Final decision of the manager for one request."""

    result: ReviewResult
    message: str = ""
    policy: str | None = None
