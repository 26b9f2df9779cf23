"""
Fieldsets service package for OpenFields.

This package decides where fieldsets apply and which of their fields are
shown. It provides:

- app.main: FieldsetService tying configuration, logging and both engines.
- app.rules: Rule model, single-rule evaluator and stored-shape adapters.
- app.locations: Location type registry and location rule engine.
- app.conditional: Conditional logic engine for field visibility.

Guidelines:
- Engines are pure; rely on the caller for persistence and context.
- Malformed stored rules are handled at the boundary, never in an engine.
"""
