"""Decision manager.

Lists every policy, narrows them to those applicable to and bound to the
requester, runs every registered evaluator and aggregates the results into a
single verdict.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from policy_approver.errors import PolicyListError, ReviewError
from policy_approver.models import ReviewResponse, ReviewResult
from policy_approver.predicates import DEFAULT_PREDICATES, rbac_bound

if TYPE_CHECKING:
    from collections.abc import Sequence

    from policy_approver.authz import AuthorizationOracle
    from policy_approver.lister import PolicyLister
    from policy_approver.models import Policy, SigningRequest
    from policy_approver.predicates import Predicate
    from policy_approver.registry import Registry

logger = logging.getLogger(__name__)

MESSAGE_NO_POLICIES = "No CertificateRequestPolicies exist"
MESSAGE_NONE_APPLICABLE = "No CertificateRequestPolicies bound or applicable"


class Manager:
    """Reviews signing requests against RBAC-bound policies."""

    def __init__(
        self,
        lister: PolicyLister,
        oracle: AuthorizationOracle,
        registry: Registry,
        predicates: Sequence[Predicate] = DEFAULT_PREDICATES,
    ) -> None:
        self._lister = lister
        self._registry = registry
        # RBAC is the most expensive predicate, so it always runs last.
        self._predicates: list[Predicate] = [*predicates, rbac_bound(oracle)]

    async def review(self, request: SigningRequest) -> ReviewResponse:
        """Decide whether ``request`` should be approved.

        Returns ``Unprocessed`` when no policy applies to the request,
        ``Approved`` when the first applicable policy passes every evaluator,
        and ``Denied`` otherwise, with every policy's violations listed by
        policy name.

        Raises:
            PolicyListError: If the policies could not be listed.
            ReviewError: If a predicate or evaluator failed.
        """
        try:
            policies = await self._lister.list()
        except PolicyListError:
            raise
        except Exception as exc:
            raise PolicyListError(f"failed to list CertificateRequestPolicies: {exc}") from exc

        if not policies:
            return self._unprocessed(request, MESSAGE_NO_POLICIES)

        policies = await self._select(request, policies)
        if not policies:
            return self._unprocessed(request, MESSAGE_NONE_APPLICABLE)

        # policy name -> combined evaluator messages
        denials: dict[str, str] = {}

        for policy in policies:
            denied, messages = await self._evaluate(policy, request)
            if not denied:
                logger.info(
                    "Request %s/%s approved by policy %s",
                    request.namespace,
                    request.name,
                    policy.name,
                )
                return ReviewResponse(
                    result=ReviewResult.APPROVED,
                    message=f'Approved by CertificateRequestPolicy: "{policy.name}"',
                    policy=policy.name,
                )
            denials[policy.name] = ", ".join(messages)

        message = " ".join(f"[{name}: {denials[name]}]" for name in sorted(denials))
        logger.info(
            "Request %s/%s denied by %d policies",
            request.namespace,
            request.name,
            len(denials),
        )
        return ReviewResponse(
            result=ReviewResult.DENIED,
            message=f"No policy approved this request: {message}",
        )

    async def _select(self, request: SigningRequest, policies: list[Policy]) -> list[Policy]:
        for predicate in self._predicates:
            try:
                policies = await predicate(request, policies)
            except Exception as exc:
                raise ReviewError(f"failed to determine bound policies: {exc}") from exc
            if not policies:
                break
        return policies

    async def _evaluate(self, policy: Policy, request: SigningRequest) -> tuple[bool, list[str]]:
        """Run every evaluator so the denial message is complete."""
        denied = False
        messages: list[str] = []
        for evaluator in self._registry.list():
            try:
                response = await evaluator.evaluate(policy, request)
            except Exception as exc:
                raise ReviewError(
                    f"evaluator '{evaluator.name}' failed on policy '{policy.name}': {exc}"
                ) from exc
            if response.message:
                messages.append(response.message)
            if response.is_denied:
                denied = True
        return denied, messages

    @staticmethod
    def _unprocessed(request: SigningRequest, message: str) -> ReviewResponse:
        logger.info("Request %s/%s unprocessed: %s", request.namespace, request.name, message)
        return ReviewResponse(result=ReviewResult.UNPROCESSED, message=message)
