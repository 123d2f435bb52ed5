"""Policy listing collaborators."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from policy_approver.errors import PolicyListError, ResourceDecodeError
from policy_approver.resources import policy_from_resource

if TYPE_CHECKING:
    from collections.abc import Iterable

    from policy_approver.models import Policy

logger = logging.getLogger(__name__)

POLICY_LIST_PATH = "/apis/policy.cert-manager.io/v1alpha1/certificaterequestpolicies"


class PolicyLister(Protocol):
    """Returns the full current set of policies."""

    async def list(self) -> list[Policy]: ...


class StaticPolicyLister:
    """Lister over a fixed, in-memory set of policies."""

    def __init__(self, policies: Iterable[Policy] = ()) -> None:
        self._policies = list(policies)

    async def list(self) -> list[Policy]:
        return list(self._policies)


class KubernetesPolicyLister:
    """Lists CertificateRequestPolicies from the Kubernetes API server."""

    def __init__(self, http_client: httpx.AsyncClient, timeout: float = 10.0) -> None:
        self._http_client = http_client
        self._timeout = timeout

    async def list(self) -> list[Policy]:
        """Fetch and decode every CertificateRequestPolicy in the cluster.

        Raises:
            PolicyListError: If the API call fails or an object cannot be
                decoded.
        """
        try:
            resp = await self._http_client.get(POLICY_LIST_PATH, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Listing policies returned %s", exc.response.status_code)
            raise PolicyListError(
                f"failed to list CertificateRequestPolicies: API server returned "
                f"{exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise PolicyListError(f"failed to list CertificateRequestPolicies: {exc}") from exc
        except ValueError as exc:
            raise PolicyListError("failed to list CertificateRequestPolicies: invalid JSON") from exc

        try:
            policies = [policy_from_resource(item) for item in data.get("items") or []]
        except ResourceDecodeError as exc:
            raise PolicyListError(str(exc)) from exc

        logger.debug("Listed %d CertificateRequestPolicies", len(policies))
        return policies
