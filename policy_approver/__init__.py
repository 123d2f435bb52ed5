"""Policy based approval of certificate signing requests."""

from policy_approver.authz import AuthorizationOracle, ResourceDescriptor, SubjectAccessReviewOracle
from policy_approver.errors import (
    ApproverError,
    AuthorizationError,
    DuplicateEvaluatorError,
    PolicyListError,
    ResourceDecodeError,
    ReviewError,
)
from policy_approver.evaluators import AttributeEvaluator, Evaluator
from policy_approver.lister import KubernetesPolicyLister, PolicyLister, StaticPolicyLister
from policy_approver.manager import Manager
from policy_approver.models import (
    EvaluationResponse,
    EvaluationResult,
    IssuerRef,
    IssuerRefPattern,
    KeyAlgorithm,
    Policy,
    PolicySpec,
    PrivateKeyConstraints,
    ReviewResponse,
    ReviewResult,
    SigningRequest,
    UserInfo,
    Violation,
)
from policy_approver.registry import Registry, default_registry

__all__ = [
    "ApproverError",
    "AttributeEvaluator",
    "AuthorizationError",
    "AuthorizationOracle",
    "DuplicateEvaluatorError",
    "EvaluationResponse",
    "EvaluationResult",
    "Evaluator",
    "IssuerRef",
    "IssuerRefPattern",
    "KeyAlgorithm",
    "KubernetesPolicyLister",
    "Manager",
    "Policy",
    "PolicyListError",
    "PolicyLister",
    "PolicySpec",
    "PrivateKeyConstraints",
    "Registry",
    "ResourceDecodeError",
    "ResourceDescriptor",
    "ReviewError",
    "ReviewResponse",
    "ReviewResult",
    "SigningRequest",
    "StaticPolicyLister",
    "SubjectAccessReviewOracle",
    "UserInfo",
    "Violation",
    "default_registry",
]
