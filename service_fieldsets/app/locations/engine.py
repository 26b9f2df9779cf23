"""
Location rule engine: decides whether a fieldset is active for a placement.
"""

from typing import Any, Optional

from shared.logging import get_logger
from ..rules.evaluator import RuleEvaluator
from ..rules.groups import any_group_matches
from ..rules.models import PlacementContext, Rule, RuleGroupSet
from .types import LocationTypeRegistry, create_default_registry


class LocationRuleEngine:
    """Evaluate fieldset location rules against a placement context.

    Stateless apart from the location type registry, which is fixed once the
    engine is built. A rule set with no groups matches everywhere.
    """

    def __init__(
        self,
        registry: Optional[LocationTypeRegistry] = None,
        evaluator: Optional[RuleEvaluator] = None,
    ):
        self.logger = get_logger("fieldsets.location_engine")
        self.registry = registry or create_default_registry()
        self.evaluator = evaluator or RuleEvaluator()

    def matches(self, rule_group_set: RuleGroupSet, context: PlacementContext) -> bool:
        """True if any group in ``rule_group_set`` fully matches ``context``."""
        result = any_group_matches(
            rule_group_set,
            lambda rule: self._check_rule(rule, context)
        )

        self.logger.debug(
            "Location rules evaluated",
            groups=len(rule_group_set),
            post_type=context.post_type,
            matched=result
        )

        return result

    def resolve(self, subject: str, context: PlacementContext) -> Any:
        """Actual context value for a location subject; None if unknown."""
        location_type = self.registry.get(subject)
        if location_type is None:
            return None
        return location_type.resolver(context)

    def _check_rule(self, rule: Rule, context: PlacementContext) -> bool:
        location_type = self.registry.get(rule.subject)
        if location_type is None:
            self.logger.debug("Unknown location type", subject=rule.subject)
        actual = self.resolve(rule.subject, context)

        operand = rule.operand
        if operand is not None and location_type is not None and location_type.normalize:
            operand = location_type.normalize(operand)

        return self.evaluator.evaluate(actual, rule.operator, operand)
