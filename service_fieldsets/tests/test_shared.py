"""
Unit tests for shared configuration, errors and logging helpers.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import get_config
from shared.errors import ErrorResponse, MigrationError, OpenFieldsException, ValidationError
from shared.logging import (
    add_evaluation_context, add_service_context, evaluation_context,
    fieldset_id_var, post_id_var
)


class TestConfig:
    """Test cases for component configuration."""

    def test_defaults(self, monkeypatch):
        """Test default settings."""
        monkeypatch.delenv("OPENFIELDS_LOG_LEVEL", raising=False)
        config = get_config("fieldsets")

        assert config.service_name == "fieldsets"
        assert config.log_level == "info"
        assert config.default_page_template == "default"
        assert config.default_post_format == "standard"
        assert config.strict_rule_loading is False

    def test_environment_override(self, monkeypatch):
        """Test settings are read from OPENFIELDS_ variables."""
        monkeypatch.setenv("OPENFIELDS_LOG_LEVEL", "debug")
        monkeypatch.setenv("OPENFIELDS_STRICT_RULE_LOADING", "true")

        config = get_config("fieldsets")

        assert config.log_level == "debug"
        assert config.strict_rule_loading is True

    def test_keyword_override(self):
        """Test explicit overrides win."""
        config = get_config("fieldsets", default_post_format="aside")

        assert config.default_post_format == "aside"


class TestErrors:
    """Test cases for error types."""

    def test_to_response(self):
        """Test conversion to the error response model."""
        error = ValidationError("Invalid location rule", {"group": 2})

        response = error.to_response()

        assert isinstance(response, ErrorResponse)
        assert response.code == "VALIDATION_ERROR"
        assert response.message == "Invalid location rule"
        assert response.details == {"group": 2}

    def test_hierarchy(self):
        """Test all errors share the base exception."""
        assert isinstance(MigrationError(), OpenFieldsException)
        assert MigrationError().code == "MIGRATION_ERROR"

        with pytest.raises(OpenFieldsException):
            raise ValidationError()


class TestLoggingContext:
    """Test cases for log event processors."""

    def test_service_context(self):
        """Test the service name is taken from the logger name."""
        event = add_service_context(None, "info", {"logger": "fieldsets.location_engine"})

        assert event["service"] == "fieldsets"

    def test_evaluation_context(self):
        """Test fieldset and post ids are attached inside the block."""
        with evaluation_context(fieldset_id=3, post_id=99):
            event = add_evaluation_context(None, "info", {})

        assert event["fieldset_id"] == "3"
        assert event["post_id"] == "99"

    def test_context_reset_on_exit(self):
        """Test ids do not outlive the block."""
        with evaluation_context(fieldset_id=3, post_id=99):
            pass

        assert fieldset_id_var.get() is None
        assert post_id_var.get() is None
        assert add_evaluation_context(None, "info", {}) == {}

    def test_context_reset_on_error(self):
        """Test ids are restored when the block raises."""
        with pytest.raises(ValueError):
            with evaluation_context(fieldset_id=3, post_id=99):
                raise ValueError("boom")

        assert post_id_var.get() is None

    def test_nested_context_clears_post_id(self):
        """Test an inner block without a post id does not inherit the outer one."""
        with evaluation_context(fieldset_id=1, post_id=42):
            with evaluation_context(fieldset_id=2):
                inner = add_evaluation_context(None, "info", {})
            outer = add_evaluation_context(None, "info", {})

        assert inner == {"fieldset_id": "2"}
        assert outer == {"fieldset_id": "1", "post_id": "42"}
