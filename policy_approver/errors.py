"""Exceptions raised by the policy approver."""

from __future__ import annotations


class ApproverError(Exception):
    """Base class for all policy approver errors."""


class DuplicateEvaluatorError(ApproverError):
    """Raised when two evaluators are registered under the same name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"evaluator '{name}' is already registered")


class PolicyListError(ApproverError):
    """Raised when the set of policies could not be listed."""


class AuthorizationError(ApproverError):
    """Raised when an authorization check could not be completed."""

    def __init__(self, policy_name: str, message: str) -> None:
        self.policy_name = policy_name
        super().__init__(f"failed to check use of policy '{policy_name}': {message}")


class ReviewError(ApproverError):
    """Raised when a review is aborted by a failing predicate or evaluator."""


class ResourceDecodeError(ApproverError):
    """Raised when a Kubernetes object cannot be decoded into a domain model."""
