"""
Shared utilities for OpenFields.

This package aggregates common building blocks consumed by the rule
engines and the fieldset service:

- config: Component configuration via pydantic-settings
- logging: Structured logging with evaluation correlation
- errors: Canonical error types and responses
- base_service: Config and logging wiring for a named component

Do not import from service_* packages into shared/.
"""
