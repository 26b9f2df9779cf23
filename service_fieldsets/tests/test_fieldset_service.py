"""
Unit tests for the fieldset service.
"""

import json
import pytest
from unittest.mock import MagicMock

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import get_config
from shared.errors import ValidationError
from shared.logging import fieldset_id_var, post_id_var
from service_fieldsets.app.main import FieldsetService
from service_fieldsets.app.locations.engine import LocationRuleEngine
from service_fieldsets.app.rules.models import (
    FieldDefinition, Fieldset, PlacementContext, Rule
)


class TestFieldsetService:
    """Test cases for FieldsetService."""

    @pytest.fixture
    def service(self):
        """Create FieldsetService instance."""
        return FieldsetService(config=get_config("fieldsets"))

    @pytest.fixture
    def fieldsets(self):
        """Fieldsets with different location rules, out of menu order."""
        return [
            Fieldset(
                id=1,
                title="Post Extras",
                field_key="post_extras",
                menu_order=5,
                location_rules=[[Rule("post_type", "equals", "post")]],
            ),
            Fieldset(
                id=2,
                title="Everywhere",
                field_key="everywhere",
                menu_order=1,
            ),
            Fieldset(
                id=3,
                title="Page Hero",
                field_key="page_hero",
                location_rules=[[Rule("post_type", "equals", "page")]],
            ),
            Fieldset(
                id=4,
                title="Draft Fields",
                field_key="draft_fields",
                status="inactive",
            ),
        ]

    @pytest.fixture
    def gallery_fieldset(self):
        """Fieldset whose gallery field depends on a switch."""
        return Fieldset(
            id=10,
            title="Gallery",
            field_key="gallery",
            fields=[
                FieldDefinition(name="show_gallery", type="switch"),
                FieldDefinition(
                    name="gallery",
                    type="gallery",
                    conditional_logic=[[Rule("show_gallery", "equals", "1")]],
                ),
                FieldDefinition(
                    name="gallery_caption",
                    type="text",
                    conditional_logic=[[Rule("gallery", "is_not_empty")]],
                ),
            ],
        )

    def test_get_fieldsets_for_context(self, service, fieldsets):
        """Test matching fieldsets are returned in menu order."""
        matched = service.get_fieldsets_for_context(fieldsets, PlacementContext(post_type="post"))

        assert [fs.field_key for fs in matched] == ["everywhere", "post_extras"]

    def test_inactive_fieldsets_skipped(self, service, fieldsets):
        """Test inactive fieldsets never match even without rules."""
        matched = service.get_fieldsets_for_context(fieldsets, PlacementContext(post_type="page"))

        assert "draft_fields" not in [fs.field_key for fs in matched]
        assert [fs.field_key for fs in matched] == ["page_hero", "everywhere"]

    def test_no_fieldsets(self, service):
        """Test no fieldsets means nothing to match."""
        assert service.get_fieldsets_for_context([], PlacementContext()) == []

    def test_field_visibility(self, service, gallery_fieldset):
        """Test visibility of every field is computed."""
        visibility = service.get_field_visibility(gallery_fieldset, {"show_gallery": "1"})

        assert visibility == {"show_gallery": True, "gallery": True, "gallery_caption": False}

    def test_visible_fields(self, service, gallery_fieldset):
        """Test only visible fields are returned."""
        fields = service.get_visible_fields(gallery_fieldset, {"show_gallery": "0"})

        assert [f.name for f in fields] == ["show_gallery"]

    def test_visible_fields_with_values(self, service, gallery_fieldset):
        """Test dependent fields appear once their inputs are set."""
        fields = service.get_visible_fields(
            gallery_fieldset,
            {"show_gallery": True, "gallery": [101, 102]}
        )

        assert [f.name for f in fields] == ["show_gallery", "gallery", "gallery_caption"]

    def test_location_types(self, service):
        """Test location types are exposed for the builder."""
        keys = [t.key for t in service.get_location_types()]

        assert "page_template" in keys
        assert "user_role" in keys

    def test_injected_engine(self, fieldsets):
        """Test an injected location engine is used for matching."""
        engine = MagicMock(spec=LocationRuleEngine)
        engine.matches.return_value = False
        service = FieldsetService(config=get_config("fieldsets"), location_engine=engine)

        assert service.get_fieldsets_for_context(fieldsets, PlacementContext()) == []
        assert engine.matches.call_count == 3

    def test_evaluation_context_restored(self, fieldsets):
        """Test log context ids are set while matching and cleared afterwards."""
        seen = []
        engine = MagicMock(spec=LocationRuleEngine)
        engine.matches.side_effect = lambda rules, context: seen.append(
            (fieldset_id_var.get(), post_id_var.get())
        ) or True
        service = FieldsetService(config=get_config("fieldsets"), location_engine=engine)

        service.get_fieldsets_for_context(fieldsets, PlacementContext(post_type="post", post_id=42))
        assert seen[0] == ("3", "42")
        assert fieldset_id_var.get() is None
        assert post_id_var.get() is None

        seen.clear()
        service.get_fieldsets_for_context(fieldsets, PlacementContext(post_type="post"))
        assert {post_id for _, post_id in seen} == {None}
        assert post_id_var.get() is None

    def test_configured_template_sentinel(self):
        """Test the page template sentinel comes from config."""
        service = FieldsetService(config=get_config("fieldsets", default_page_template="none"))
        fieldset = Fieldset(
            id=1,
            title="Default Template",
            field_key="default_template",
            location_rules=[[Rule("page_template", "equals", "none")]],
        )

        assert service.get_fieldsets_for_context([fieldset], PlacementContext(page_template="")) == [fieldset]

    def test_service_info(self, service):
        """Test service info."""
        info = service.get_service_info()

        assert info["service"] == "fieldsets"
        assert "env" in info


class TestBuildFieldset:
    """Test cases for building fieldsets from stored records."""

    @pytest.fixture
    def service(self):
        """Create FieldsetService instance."""
        return FieldsetService(config=get_config("fieldsets"))

    @pytest.fixture
    def record(self):
        """Stored fieldset record."""
        return {
            "id": "7",
            "title": "Product Details",
            "field_key": "product_details",
            "status": "active",
            "menu_order": "2",
            "location_rules": json.dumps([
                {"rules": [{"type": "post_type", "operator": "==", "value": "product"}]}
            ]),
        }

    @pytest.fixture
    def field_records(self):
        """Stored field records."""
        return [
            {"name": "on_sale", "type": "switch"},
            {
                "name": "sale_price",
                "type": "number",
                "conditional_logic": json.dumps([[{"field": "on_sale", "operator": "==", "value": "1"}]]),
            },
        ]

    def test_build_from_record(self, service, record, field_records):
        """Test a stored record becomes a fieldset."""
        fieldset = service.build_fieldset(record, field_records=field_records)

        assert fieldset.id == 7
        assert fieldset.menu_order == 2
        assert fieldset.location_rules == [[Rule("post_type", "equals", "product")]]
        assert fieldset.fields[0].conditional_logic == []
        assert fieldset.fields[1].conditional_logic == [[Rule("on_sale", "equals", "1")]]

    def test_build_from_location_rows(self, service, record):
        """Test location rows take precedence over stored JSON."""
        rows = [{"group_id": 0, "param": "post_type", "operator": "==", "value": "page"}]

        fieldset = service.build_fieldset(record, location_rows=rows)

        assert fieldset.location_rules == [[Rule("post_type", "equals", "page")]]

    def test_malformed_rules_unrestricted(self, service, record):
        """Test malformed stored location rules load as no restriction."""
        record["location_rules"] = "{broken"

        fieldset = service.build_fieldset(record)

        assert fieldset.location_rules == []
        assert service.get_fieldsets_for_context([fieldset], PlacementContext(post_type="post")) == [fieldset]

    def test_strict_loading(self, record):
        """Test strict loading surfaces malformed rules."""
        service = FieldsetService(config=get_config("fieldsets", strict_rule_loading=True))
        record["location_rules"] = "{broken"

        with pytest.raises(ValidationError):
            service.build_fieldset(record)

    def test_malformed_rule_fails_only_itself(self, service, record, field_records):
        """Test one bad stored rule does not lift the whole restriction."""
        record["location_rules"] = json.dumps([
            {"rules": [{"type": "post_type", "operator": None, "value": "page"}]},
            {"rules": [{"operator": "==", "value": "post"}]},
        ])
        field_records[1]["conditional_logic"] = json.dumps([[{"field": "on_sale", "value": "1"}]])

        fieldset = service.build_fieldset(record, field_records=field_records)

        assert service.get_fieldsets_for_context([fieldset], PlacementContext(post_type="post")) == []
        assert service.get_fieldsets_for_context([fieldset], PlacementContext(post_type="page")) == [fieldset]
        assert [f.name for f in service.get_visible_fields(fieldset, {"on_sale": "0"})] == ["on_sale"]

    def test_duplicate_field_names_rejected(self, service, record, field_records):
        """Test two fields with the same name are rejected."""
        field_records.append({"name": "sale_price", "type": "text"})

        with pytest.raises(ValidationError) as exc_info:
            service.build_fieldset(record, field_records=field_records)

        assert exc_info.value.details == {"field": "sale_price"}

    def test_end_to_end(self, service, record, field_records):
        """Test matching and visibility on a built fieldset."""
        fieldset = service.build_fieldset(record, field_records=field_records)

        matched = service.get_fieldsets_for_context([fieldset], PlacementContext(post_type="product"))
        visible = service.get_visible_fields(matched[0], {"on_sale": "1"})

        assert [f.name for f in visible] == ["on_sale", "sale_price"]
