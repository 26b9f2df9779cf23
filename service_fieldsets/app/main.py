"""
Fieldset service for OpenFields.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import ValidationError
from shared.logging import evaluation_context

from .conditional.engine import ConditionalLogicEngine
from .locations.engine import LocationRuleEngine
from .locations.types import create_default_registry
from .rules.evaluator import RuleEvaluator
from .rules.models import (
    FieldDefinition, FieldValueSnapshot, Fieldset, LocationTypeInfo,
    PlacementContext
)
from .rules.normalization import (
    load_conditional_logic, load_location_rules, rows_to_rule_groups
)


class FieldsetService(BaseService):
    """Select fieldsets for a placement and compute field visibility.

    Engines are built once and shared by reference; pass them in to reuse
    one pair across services.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        location_engine: Optional[LocationRuleEngine] = None,
        conditional_engine: Optional[ConditionalLogicEngine] = None,
    ):
        super().__init__("fieldsets", config)

        evaluator = RuleEvaluator()
        self.location_engine = location_engine or LocationRuleEngine(
            registry=create_default_registry(
                default_page_template=self.config.default_page_template,
                default_post_format=self.config.default_post_format,
            ),
            evaluator=evaluator,
        )
        self.conditional_engine = conditional_engine or ConditionalLogicEngine(evaluator)

    def get_location_types(self) -> List[LocationTypeInfo]:
        """Location types available to the builder."""
        return self.location_engine.registry.describe()

    def get_fieldsets_for_context(
        self,
        fieldsets: Iterable[Fieldset],
        context: PlacementContext,
    ) -> List[Fieldset]:
        """Active fieldsets whose location rules match, in menu order."""
        active = [fs for fs in fieldsets if fs.status == "active"]
        active.sort(key=lambda fs: fs.menu_order)

        matched = []
        for fieldset in active:
            with evaluation_context(fieldset_id=fieldset.id, post_id=context.post_id):
                if self.location_engine.matches(fieldset.location_rules, context):
                    matched.append(fieldset)

        self.logger.info(
            "Fieldsets matched",
            post_type=context.post_type,
            candidates=len(active),
            matched=[fs.field_key for fs in matched]
        )

        return matched

    def get_field_visibility(
        self,
        fieldset: Fieldset,
        values: FieldValueSnapshot,
    ) -> Dict[str, bool]:
        """Visibility of every field in the fieldset for the current values."""
        return self.conditional_engine.evaluate_all(
            {f.name: f.conditional_logic for f in fieldset.fields},
            values
        )

    def get_visible_fields(
        self,
        fieldset: Fieldset,
        values: FieldValueSnapshot,
    ) -> List[FieldDefinition]:
        """Fields of the fieldset that are visible for the current values."""
        visibility = self.get_field_visibility(fieldset, values)
        return [f for f in fieldset.fields if visibility[f.name]]

    def build_fieldset(
        self,
        record: Mapping[str, Any],
        location_rows: Optional[Iterable[Any]] = None,
        field_records: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> Fieldset:
        """Build a Fieldset from stored records.

        Location rules come from ``location_rows`` when given, otherwise from
        ``record["location_rules"]``. Malformed stored rules are treated as
        empty unless ``strict_rule_loading`` is set. Raises ``ValidationError``
        when two fields share a name.
        """
        strict = self.config.strict_rule_loading

        if location_rows is not None:
            location_rules = rows_to_rule_groups(location_rows)
        else:
            location_rules = load_location_rules(record.get("location_rules"), strict=strict)

        fields = [
            FieldDefinition(
                name=f["name"],
                type=f.get("type", "text"),
                label=f.get("label"),
                conditional_logic=load_conditional_logic(f.get("conditional_logic"), strict=strict),
            )
            for f in (field_records or [])
        ]

        # Visibility is keyed by field name
        seen = set()
        for field in fields:
            if field.name in seen:
                raise ValidationError("Duplicate field name", {"field": field.name})
            seen.add(field.name)

        return Fieldset(
            id=int(record["id"]),
            title=record.get("title", ""),
            field_key=record.get("field_key", ""),
            status=record.get("status", "active"),
            menu_order=int(record.get("menu_order", 0) or 0),
            location_rules=location_rules,
            fields=fields,
        )
