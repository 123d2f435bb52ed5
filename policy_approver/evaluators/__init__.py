"""Evaluators that check signing requests against policy constraints."""

from policy_approver.evaluators.attribute import AttributeEvaluator
from policy_approver.evaluators.base import Evaluator

__all__ = ["AttributeEvaluator", "Evaluator"]
