"""Authorization oracle: may this identity use this policy?

The production oracle creates ``SubjectAccessReview`` objects against the
Kubernetes API server over HTTP.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from pydantic import BaseModel

from policy_approver.errors import AuthorizationError

if TYPE_CHECKING:
    from policy_approver.models import UserInfo

logger = logging.getLogger(__name__)

POLICY_GROUP = "policy.cert-manager.io"
POLICY_RESOURCE = "certificaterequestpolicies"
USE_VERB = "use"

SUBJECT_ACCESS_REVIEW_PATH = "/apis/authorization.k8s.io/v1/subjectaccessreviews"


class ResourceDescriptor(BaseModel):
    """Names the resource and verb an authorization check is about."""

    group: str = POLICY_GROUP
    resource: str = POLICY_RESOURCE
    name: str
    namespace: str = ""
    verb: str = USE_VERB

    @classmethod
    def for_policy(cls, policy_name: str, namespace: str = "") -> ResourceDescriptor:
        """Descriptor for 'use' of a CertificateRequestPolicy."""
        return cls(name=policy_name, namespace=namespace)


class AuthorizationOracle(Protocol):
    """Answers whether an identity may act on a resource.

    Implementations must be side-effect free from the caller's point of view
    and raise :class:`AuthorizationError` when no answer can be given.
    """

    async def check(self, user: UserInfo, resource: ResourceDescriptor) -> bool: ...


class SubjectAccessReviewOracle:
    """Authorization oracle backed by Kubernetes SubjectAccessReviews."""

    def __init__(self, http_client: httpx.AsyncClient, timeout: float = 10.0) -> None:
        self._http_client = http_client
        self._timeout = timeout

    @staticmethod
    def build_review(user: UserInfo, resource: ResourceDescriptor) -> dict[str, Any]:
        """Build the SubjectAccessReview body for a check."""
        return {
            "apiVersion": "authorization.k8s.io/v1",
            "kind": "SubjectAccessReview",
            "spec": {
                "user": user.username,
                "groups": list(user.groups),
                "uid": user.uid,
                "extra": {k: list(v) for k, v in user.extra.items()},
                "resourceAttributes": {
                    "group": resource.group,
                    "resource": resource.resource,
                    "name": resource.name,
                    "namespace": resource.namespace,
                    "verb": resource.verb,
                },
            },
        }

    async def check(self, user: UserInfo, resource: ResourceDescriptor) -> bool:
        """Create a SubjectAccessReview and return its ``status.allowed``."""
        body = self.build_review(user, resource)
        try:
            resp = await self._http_client.post(
                SUBJECT_ACCESS_REVIEW_PATH, json=body, timeout=self._timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "SubjectAccessReview for %s returned %s",
                resource.name,
                exc.response.status_code,
            )
            raise AuthorizationError(
                resource.name, f"API server returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthorizationError(resource.name, str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise AuthorizationError(resource.name, "invalid JSON response") from exc

        allowed = bool(data.get("status", {}).get("allowed", False))
        logger.debug(
            "SubjectAccessReview user=%s verb=%s policy=%s allowed=%s",
            user.username,
            resource.verb,
            resource.name,
            allowed,
        )
        return allowed
