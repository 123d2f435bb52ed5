"""Admission webhook: the HTTP boundary around the decision manager.

Decodes ``admission.k8s.io/v1`` AdmissionReviews for cert-manager
CertificateRequests, reviews them and encodes the verdict:

- Approved    -> allowed
- Denied      -> not allowed (403) with the denial message
- Unprocessed -> allowed with a warning (no policy applies, fail open)

Decoding failures are rejected with 400 and internal failures with 500, so
they can be told apart from policy driven denials.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from policy_approver.errors import ResourceDecodeError
from policy_approver.evaluators.attribute import NAME as ATTRIBUTE_EVALUATOR
from policy_approver.models import ReviewResult
from policy_approver.resources import request_from_resource

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractAsyncContextManager

    from policy_approver.manager import Manager
    from policy_approver.registry import Registry

    Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]

logger = logging.getLogger(__name__)

ADMISSION_API_VERSION = "admission.k8s.io/v1"


def admission_response(
    uid: str,
    allowed: bool,
    *,
    code: int | None = None,
    message: str = "",
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    """Build an AdmissionReview carrying a response."""
    response: dict[str, Any] = {"uid": uid, "allowed": allowed}
    if code is not None or message:
        status: dict[str, Any] = {"message": message}
        if code is not None:
            status["code"] = code
        response["status"] = status
    if warnings:
        response["warnings"] = warnings
    return {"apiVersion": ADMISSION_API_VERSION, "kind": "AdmissionReview", "response": response}


class Validator:
    """Validates CertificateRequests submitted through admission review."""

    def __init__(self, manager: Manager, registry: Registry) -> None:
        self._manager = manager
        self._registry = registry

    def check(self) -> bool:
        """Readiness: the built-in attribute evaluator is registered."""
        return ATTRIBUTE_EVALUATOR in self._registry

    async def validate(self, review: dict[str, Any]) -> dict[str, Any]:
        """Review the CertificateRequest in ``review`` and build the response."""
        request = review.get("request")
        if not isinstance(request, dict):
            logger.warning("Rejecting admission review without a request")
            return admission_response("", False, code=400, message="admission review has no request")
        uid = request.get("uid", "")

        try:
            signing_request = request_from_resource(request.get("object"))
        except ResourceDecodeError as exc:
            logger.warning("Rejecting admission request %s: %s", uid, exc)
            return admission_response(uid, False, code=400, message=str(exc))

        try:
            decision = await self._manager.review(signing_request)
        except Exception as exc:
            logger.exception("Review of admission request %s failed", uid)
            return admission_response(uid, False, code=500, message=f"internal error: {exc}")

        if decision.result == ReviewResult.APPROVED:
            return admission_response(uid, True, message=decision.message)
        if decision.result == ReviewResult.UNPROCESSED:
            return admission_response(uid, True, warnings=[decision.message])
        return admission_response(uid, False, code=403, message=decision.message)


# ── Routes ───────────────────────────────────────────────────────

router = APIRouter(tags=["admission"])


def get_validator(request: Request) -> Validator:
    return request.app.state.validator


@router.post("/validate")
async def validate(
    review: dict[str, Any],
    validator: Validator = Depends(get_validator),
) -> dict[str, Any]:
    """Admission endpoint for CertificateRequests."""
    return await validator.validate(review)


@router.get("/readyz", response_model=None)
async def readyz(validator: Validator = Depends(get_validator)) -> dict[str, str] | JSONResponse:
    """Readiness check, healthy once the attribute evaluator is registered."""
    if not validator.check():
        return JSONResponse(status_code=503, content={"status": "not_ready"})
    return {"status": "ok"}


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok", "service": "policy-approver"}


def create_app(validator: Validator, lifespan: Lifespan | None = None) -> FastAPI:
    """Build the webhook application around ``validator``."""
    app = FastAPI(
        title="Policy Approver",
        description="Policy based approval of cert-manager CertificateRequests",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.validator = validator
    app.include_router(router)
    return app
