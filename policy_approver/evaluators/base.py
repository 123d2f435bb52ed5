"""Abstract evaluator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policy_approver.models import EvaluationResponse, Policy, SigningRequest


class Evaluator(ABC):
    """Checks a signing request against the constraints of one policy.

    Evaluators must be pure functions of (policy, request): the manager may
    call them concurrently for different requests. An evaluator can only
    narrow approvals. A request is approved by a policy only if every
    registered evaluator returns ``NotDenied`` for it.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique evaluator identifier, e.g. 'attribute'."""

    @abstractmethod
    async def evaluate(self, policy: Policy, request: SigningRequest) -> EvaluationResponse:
        """Evaluate ``request`` against ``policy``.

        Policy violations are reported in the response. Raising is reserved
        for failures that prevent a decision, and aborts the whole review.
        """
