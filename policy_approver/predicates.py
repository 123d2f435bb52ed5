"""Selection predicates.

A predicate narrows the set of policies to those applicable to a request.
Predicates never add policies and are applied by the manager in order:
cheap local filters first, the RBAC check (one round trip per policy) last.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

from policy_approver.authz import ResourceDescriptor
from policy_approver.evaluators.attribute import issuer_matches

if TYPE_CHECKING:
    from policy_approver.authz import AuthorizationOracle
    from policy_approver.models import Policy, SigningRequest

logger = logging.getLogger(__name__)

Predicate = Callable[["SigningRequest", "list[Policy]"], Coroutine[Any, Any, "list[Policy]"]]


async def ready(request: SigningRequest, policies: list[Policy]) -> list[Policy]:
    """Keep policies whose Ready condition is True."""
    kept: list[Policy] = []
    for policy in policies:
        if policy.ready:
            kept.append(policy)
        else:
            logger.debug("Skipping policy %s: not ready", policy.name)
    return kept


async def issuer_ref_selector(request: SigningRequest, policies: list[Policy]) -> list[Policy]:
    """Keep policies whose issuerRefSelector matches the request's issuerRef.

    An unset selector, or an unset field within it, matches anything.
    """
    return [
        p
        for p in policies
        if p.spec.issuer_ref_selector is None
        or issuer_matches(p.spec.issuer_ref_selector, request.issuer_ref)
    ]


def rbac_bound(oracle: AuthorizationOracle) -> Predicate:
    """Build a predicate keeping policies the requester may 'use'.

    Errors from the oracle propagate immediately; a policy the requester is
    not bound to is dropped.
    """

    async def _rbac_bound(request: SigningRequest, policies: list[Policy]) -> list[Policy]:
        bound: list[Policy] = []
        for policy in policies:
            resource = ResourceDescriptor.for_policy(policy.name, request.namespace)
            if await oracle.check(request.user, resource):
                bound.append(policy)
            else:
                logger.debug(
                    "Skipping policy %s: user %s is not bound",
                    policy.name,
                    request.user.username,
                )
        return bound

    return _rbac_bound


DEFAULT_PREDICATES: tuple[Predicate, ...] = (ready, issuer_ref_selector)
