"""
Adapters between persisted rule data and engine rule groups.

Fieldsets store location rules as ``[{"rules": [{"type", "operator",
"value"}]}]`` and fields store conditional logic as ``[[{"field",
"operator", "value"}]]``. Both may arrive as JSON text or already decoded.
The engines assume well-typed input; anything malformed is neutralized or rejected here.
"""

import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

import pydantic

from shared.errors import MigrationError, ValidationError
from shared.logging import get_logger
from .evaluator import stringify
from .models import (
    Operator, Rule, StoredConditionalRule, StoredLocationGroup,
    StoredLocationRule, LegacyConditionalLogic
)


logger = get_logger("fieldsets.rule_normalization")

# Operator spellings written by older builders and the location UI
OPERATOR_ALIASES: Dict[str, str] = {
    "==": Operator.EQUALS.value,
    "===": Operator.EQUALS.value,
    "!=": Operator.NOT_EQUALS.value,
    "!==": Operator.NOT_EQUALS.value,
    "empty": Operator.IS_EMPTY.value,
    "not_empty": Operator.IS_NOT_EMPTY.value,
}

NEGATED_OPERATORS: Dict[str, str] = {
    Operator.EQUALS.value: Operator.NOT_EQUALS.value,
    Operator.NOT_EQUALS.value: Operator.EQUALS.value,
    Operator.IS_EMPTY.value: Operator.IS_NOT_EMPTY.value,
    Operator.IS_NOT_EMPTY.value: Operator.IS_EMPTY.value,
}


def normalize_operator(operator: Optional[str]) -> str:
    """Map a stored operator to its engine name. Unknown names pass through."""
    if operator is None:
        return ""
    operator = operator.strip()
    return OPERATOR_ALIASES.get(operator, operator)


def _decode(raw: Any, what: str) -> Any:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError(f"Invalid {what} encoding", {"error": str(e)})
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid {what} JSON", {"error": str(e)})
    return raw


def _never_matching(subject: Any) -> Rule:
    # An empty operator is unknown to the evaluator, so the rule fails
    return Rule(subject=subject if isinstance(subject, str) else "", operator="", operand=None)


def _location_rule(stored: StoredLocationRule) -> Rule:
    if not stored.type:
        return _never_matching(stored.type)
    return Rule(
        subject=stored.type,
        operator=normalize_operator("==" if stored.operator is None else stored.operator),
        operand=stringify(stored.value),
    )


def _conditional_rule(stored: StoredConditionalRule) -> Rule:
    if not stored.field:
        return _never_matching(stored.field)
    return Rule(
        subject=stored.field,
        operator=normalize_operator(stored.operator),
        operand=None if stored.value is None else stringify(stored.value),
    )


def _convert_rule(
    item: Any,
    model: Type[pydantic.BaseModel],
    convert: Callable[[Any], Rule],
    subject_key: str,
    strict: bool,
) -> Rule:
    """Convert one stored rule; a malformed rule fails on its own unless strict."""
    try:
        return convert(model.model_validate(item))
    except pydantic.ValidationError as e:
        if strict:
            raise ValidationError("Invalid rule", {"errors": e.errors()})
        subject = item.get(subject_key) if isinstance(item, dict) else None
        logger.warning("Malformed rule will never match", subject=subject, errors=e.error_count())
        return _never_matching(subject)


def _location_groups(raw: Any, strict: bool) -> List[List[Rule]]:
    data = _decode(raw, "location rules")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValidationError(
            "Location rules must be a list of groups",
            {"type": type(data).__name__}
        )

    groups: List[List[Rule]] = []
    for index, item in enumerate(data):
        if isinstance(item, dict):
            try:
                stored_rules = StoredLocationGroup.model_validate(item).rules
            except pydantic.ValidationError as e:
                raise ValidationError("Invalid location rule group", {"group": index, "errors": e.errors()})
        elif isinstance(item, list):
            stored_rules = item
        else:
            raise ValidationError(
                "Location rule group must be an object or a list",
                {"group": index}
            )
        groups.append([
            _convert_rule(r, StoredLocationRule, _location_rule, "type", strict)
            for r in stored_rules
        ])

    return groups


def _conditional_groups(raw: Any, strict: bool) -> List[List[Rule]]:
    data = _decode(raw, "conditional logic")
    if data is None:
        return []
    if isinstance(data, dict):
        return migrate_legacy_conditional(data)
    if not isinstance(data, list):
        raise ValidationError(
            "Conditional logic must be a list of groups",
            {"type": type(data).__name__}
        )
    if data and all(isinstance(item, dict) for item in data):
        # Flat list written before groups existed: a single AND group
        data = [data]

    groups: List[List[Rule]] = []
    for index, item in enumerate(data):
        if not isinstance(item, list):
            raise ValidationError(
                "Conditional logic group must be a list",
                {"group": index}
            )
        groups.append([
            _convert_rule(r, StoredConditionalRule, _conditional_rule, "field", strict)
            for r in item
        ])

    return groups


def validate_location_rules(raw: Any) -> List[List[Rule]]:
    """Convert stored location rules to rule groups.

    Accepts the builder shape (groups as objects with a ``rules`` list) and
    the bare array-of-arrays shape. Raises ``ValidationError`` on anything
    else, including a single rule that is not a rule object.
    """
    return _location_groups(raw, strict=True)


def validate_conditional_logic(raw: Any) -> List[List[Rule]]:
    """Convert stored conditional logic to rule groups.

    Legacy configs (a single object with ``rules``/``relation``/``action``,
    or a flat list of rules) are migrated. Raises ``ValidationError`` on
    anything else.
    """
    return _conditional_groups(raw, strict=True)


def load_location_rules(raw: Any, strict: bool = False) -> List[List[Rule]]:
    """Lenient loading of stored location rules.

    A malformed rule is kept as a rule that never matches, so its group
    fails while the other groups still apply. Input that is not a group
    list at all means no restriction.
    """
    try:
        return _location_groups(raw, strict)
    except ValidationError as e:
        if strict:
            raise
        logger.warning("Ignoring malformed location rules", error=e.message, details=e.details)
        return []


def load_conditional_logic(raw: Any, strict: bool = False) -> List[List[Rule]]:
    """Lenient loading of stored conditional logic.

    A malformed rule is kept as a rule that never passes. Input that is not
    a group list at all means always visible.
    """
    try:
        return _conditional_groups(raw, strict)
    except (ValidationError, MigrationError) as e:
        if strict:
            raise
        logger.warning("Ignoring malformed conditional logic", error=e.message, details=e.details)
        return []


def _row_get(row: Any, key: str, default: Any = None) -> Any:
    if isinstance(row, dict):
        return row.get(key, default)
    return getattr(row, key, default)


def rows_to_rule_groups(rows: Iterable[Any]) -> List[List[Rule]]:
    """Regroup flat location rows into rule groups.

    Each row carries ``group_id``, ``param``, ``operator`` and ``value``, as
    stored in the locations table. Groups are ordered by ``group_id``; rules
    keep their row order within a group.
    """
    groups: Dict[int, List[Rule]] = {}

    for row in rows:
        group_id = int(_row_get(row, "group_id", 0) or 0)
        groups.setdefault(group_id, []).append(Rule(
            subject=_row_get(row, "param", "") or "",
            operator=normalize_operator(_row_get(row, "operator", "==")),
            operand=stringify(_row_get(row, "value", "")),
        ))

    return [groups[group_id] for group_id in sorted(groups)]


def migrate_legacy_conditional(data: Any) -> List[List[Rule]]:
    """Convert a single-group conditional config to rule groups.

    ``relation: and`` becomes one group and ``relation: or`` one group per
    rule. ``action: hide`` is inverted by negating every rule and swapping
    the relation.
    """
    try:
        legacy = LegacyConditionalLogic.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError("Invalid legacy conditional logic", {"errors": e.errors()})

    if not legacy.enabled or not legacy.rules:
        return []

    rules = [_conditional_rule(r) for r in legacy.rules]
    relation = legacy.relation.lower()
    if relation not in ("and", "or"):
        raise MigrationError("Unknown relation", {"relation": legacy.relation})

    if legacy.action.lower() == "hide":
        rules = [_negate(rule) for rule in rules]
        relation = "or" if relation == "and" else "and"

    if relation == "and":
        return [rules]
    return [[rule] for rule in rules]


def _negate(rule: Rule) -> Rule:
    negated = NEGATED_OPERATORS.get(rule.operator)
    if negated is None:
        raise MigrationError(
            "Operator cannot be inverted for a hide action",
            {"field": rule.subject, "operator": rule.operator}
        )
    return Rule(subject=rule.subject, operator=negated, operand=rule.operand)
