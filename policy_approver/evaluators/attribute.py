"""Built-in evaluator for the base fields of a CertificateRequestPolicy.

The attribute evaluator must always be registered: it is the only evaluator
that understands the fields every policy can constrain.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from policy_approver import wildcard
from policy_approver.duration import format_duration
from policy_approver.evaluators.base import Evaluator
from policy_approver.models import EvaluationResponse, KeyAlgorithm, Violation

if TYPE_CHECKING:
    from policy_approver.models import (
        IssuerRef,
        IssuerRefPattern,
        Policy,
        PrivateKeyConstraints,
        SigningRequest,
    )

NAME = "attribute"

# cert-manager signs for 90 days when a request does not ask for a duration.
DEFAULT_DURATION = timedelta(hours=2160)

# Algorithms whose keys have no meaningful size.
_FIXED_SIZE_ALGORITHMS = {KeyAlgorithm.ED25519}


def _render_list(values: list[str]) -> str:
    return "[" + ", ".join(values) + "]"


def issuer_matches(pattern: IssuerRefPattern, ref: IssuerRef) -> bool:
    """Return True if every set field of ``pattern`` matches ``ref``."""
    if pattern.name is not None and not wildcard.matches(pattern.name, ref.name):
        return False
    if pattern.kind is not None and not wildcard.matches(pattern.kind, ref.kind):
        return False
    if pattern.group is not None and not wildcard.matches(pattern.group, ref.group):
        return False
    return True


class AttributeEvaluator(Evaluator):
    """Compares request attributes against the policy's allowed values."""

    @property
    def name(self) -> str:
        return NAME

    async def evaluate(self, policy: Policy, request: SigningRequest) -> EvaluationResponse:
        violations = self.violations(policy, request)
        if not violations:
            return EvaluationResponse.not_denied()
        return EvaluationResponse.denied(violations)

    def violations(self, policy: Policy, request: SigningRequest) -> list[Violation]:
        """Return every violated constraint, in a fixed field order."""
        spec = policy.spec
        found: list[Violation] = []

        if spec.allowed_common_name is not None and not wildcard.matches(
            spec.allowed_common_name, request.common_name
        ):
            found.append(
                Violation(
                    field="spec.allowedCommonName",
                    value=request.common_name,
                    allowed=spec.allowed_common_name,
                )
            )

        if spec.min_duration is not None:
            duration = request.duration if request.duration is not None else DEFAULT_DURATION
            if duration < spec.min_duration:
                found.append(
                    Violation(
                        field="spec.minDuration",
                        value=format_duration(duration),
                        allowed=format_duration(spec.min_duration),
                    )
                )

        for path, allowed, values in (
            ("spec.allowedDNSNames", spec.allowed_dns_names, request.dns_names),
            ("spec.allowedIPAddresses", spec.allowed_ip_addresses, request.ip_addresses),
            ("spec.allowedURIs", spec.allowed_uris, request.uris),
        ):
            if allowed is not None and not wildcard.subset(allowed, values):
                found.append(Violation(field=path, value=list(values), allowed=_render_list(allowed)))

        if spec.allowed_issuers is not None and not any(
            issuer_matches(p, request.issuer_ref) for p in spec.allowed_issuers
        ):
            found.append(
                Violation(
                    field="spec.allowedIssuers",
                    value=request.issuer_ref.model_dump(),
                    allowed=_render_list([str(p) for p in spec.allowed_issuers]),
                )
            )

        if spec.allowed_is_ca is not None and spec.allowed_is_ca != request.is_ca:
            found.append(
                Violation(
                    field="spec.allowedIsCA",
                    value=request.is_ca,
                    allowed=str(spec.allowed_is_ca).lower(),
                )
            )

        if spec.allowed_private_key is not None:
            found.extend(self._private_key_violations(spec.allowed_private_key, request))

        return found

    @staticmethod
    def _private_key_violations(
        key: PrivateKeyConstraints, request: SigningRequest
    ) -> list[Violation]:
        found: list[Violation] = []

        if key.allowed_algorithm is not None and request.key_algorithm != key.allowed_algorithm:
            found.append(
                Violation(
                    field="spec.allowedPrivateKey.allowedAlgorithm",
                    value=request.key_algorithm,
                    allowed=str(key.allowed_algorithm),
                )
            )

        if request.key_size is None or request.key_algorithm in _FIXED_SIZE_ALGORITHMS:
            return found

        if key.min_size is not None and request.key_size < key.min_size:
            found.append(
                Violation(
                    field="spec.allowedPrivateKey.minSize",
                    value=request.key_size,
                    allowed=str(key.min_size),
                )
            )
        if key.max_size is not None and request.key_size > key.max_size:
            found.append(
                Violation(
                    field="spec.allowedPrivateKey.maxSize",
                    value=request.key_size,
                    allowed=str(key.max_size),
                )
            )
        return found
