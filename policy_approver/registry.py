"""Evaluator registry.

Built once at process startup and shared read-only with the manager.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from policy_approver.errors import DuplicateEvaluatorError
from policy_approver.evaluators.attribute import AttributeEvaluator

if TYPE_CHECKING:
    from policy_approver.evaluators.base import Evaluator

logger = logging.getLogger(__name__)


class Registry:
    """Ordered collection of evaluators keyed by name."""

    def __init__(self) -> None:
        self._evaluators: dict[str, Evaluator] = {}

    def register(self, evaluator: Evaluator) -> Evaluator:
        """Register an evaluator by its name.

        Raises:
            DuplicateEvaluatorError: If an evaluator with the same name is
                already registered.
        """
        name = evaluator.name
        if name in self._evaluators:
            raise DuplicateEvaluatorError(name)
        self._evaluators[name] = evaluator
        logger.debug("Registered evaluator: %s", name)
        return evaluator

    def list(self) -> list[Evaluator]:
        """Return all registered evaluators in registration order."""
        return list(self._evaluators.values())

    def names(self) -> list[str]:
        """Return all registered evaluator names in registration order."""
        return list(self._evaluators.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._evaluators

    def __len__(self) -> int:
        return len(self._evaluators)


def default_registry(*extra: Evaluator) -> Registry:
    """Build a registry holding the attribute evaluator plus ``extra``."""
    registry = Registry()
    registry.register(AttributeEvaluator())
    for evaluator in extra:
        registry.register(evaluator)
    return registry
