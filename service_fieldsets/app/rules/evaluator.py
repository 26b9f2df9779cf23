"""
Atomic rule evaluation shared by the location and conditional engines.

All comparisons are string comparisons. Actual values are stringified with
``stringify`` before comparing; collections (multi-selects, checkbox groups,
category ids) are matched element-wise instead of as a whole.
"""

from typing import Any, Optional

from shared.logging import get_logger
from .models import Operator, UNARY_OPERATORS


COLLECTION_TYPES = (list, tuple, set, frozenset)


def stringify(value: Any) -> str:
    """Render a field or context value the way it is stored by the host."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_empty(value: Any) -> bool:
    """True for None, the empty string and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, COLLECTION_TYPES):
        return len(value) == 0
    return False


def _equals(actual: Any, operand: str) -> bool:
    # A value that was never set equals nothing
    if actual is None:
        return False
    if isinstance(actual, COLLECTION_TYPES):
        return any(stringify(item) == operand for item in actual)
    return stringify(actual) == operand


def _contains(actual: Any, operand: str) -> bool:
    if actual is None:
        return False
    if isinstance(actual, COLLECTION_TYPES):
        return any(operand in stringify(item) for item in actual)
    return operand in stringify(actual)


class RuleEvaluator:
    """Evaluate one operator against one resolved value."""

    def __init__(self):
        self.logger = get_logger("fieldsets.rule_evaluator")

    def evaluate(self, actual: Any, operator: Any, operand: Optional[str]) -> bool:
        """Evaluate ``actual <operator> operand``.

        Never raises. Unknown operators and missing operands evaluate false.
        """
        try:
            op = Operator(operator)
        except ValueError:
            self.logger.warning("Unknown rule operator", operator=operator)
            return False

        if op in UNARY_OPERATORS:
            empty = is_empty(actual)
            return empty if op == Operator.IS_EMPTY else not empty

        if operand is None:
            self.logger.debug("Rule has no operand", operator=op.value)
            return False

        operand = stringify(operand)

        if op == Operator.EQUALS:
            return _equals(actual, operand)

        elif op == Operator.NOT_EQUALS:
            return not _equals(actual, operand)

        elif op == Operator.CONTAINS:
            return _contains(actual, operand)

        return False
