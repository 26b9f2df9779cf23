"""
Conditional logic engine: decides whether a field is visible.
"""

from typing import Dict, Mapping, Optional

from shared.logging import get_logger
from ..rules.evaluator import RuleEvaluator
from ..rules.groups import any_group_matches
from ..rules.models import FieldValueSnapshot, Rule, RuleGroupSet


class ConditionalLogicEngine:
    """Evaluate field conditional logic against sibling field values.

    No conditional logic means the field is always visible. A field id
    missing from the snapshot reads as None, so ``is_empty`` rules pass and
    ``equals`` rules fail for fields that were never set.
    """

    def __init__(self, evaluator: Optional[RuleEvaluator] = None):
        self.logger = get_logger("fieldsets.conditional_engine")
        self.evaluator = evaluator or RuleEvaluator()

    def is_visible(self, rule_group_set: RuleGroupSet, values: FieldValueSnapshot) -> bool:
        """True if any group in ``rule_group_set`` passes for ``values``."""
        return any_group_matches(
            rule_group_set,
            lambda rule: self._check_rule(rule, values)
        )

    def evaluate_all(
        self,
        field_rules: Mapping[str, RuleGroupSet],
        values: FieldValueSnapshot,
    ) -> Dict[str, bool]:
        """Visibility of every field against one snapshot.

        Call again on any change to ``values``; rules may reference any
        field, so everything is recomputed.
        """
        visibility = {
            name: self.is_visible(rule_group_set, values)
            for name, rule_group_set in field_rules.items()
        }

        self.logger.debug(
            "Conditional logic evaluated",
            fields=len(visibility),
            hidden=[name for name, visible in visibility.items() if not visible]
        )

        return visibility

    def _check_rule(self, rule: Rule, values: FieldValueSnapshot) -> bool:
        return self.evaluator.evaluate(values.get(rule.subject), rule.operator, rule.operand)
