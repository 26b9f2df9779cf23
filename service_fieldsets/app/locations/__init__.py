"""
Location rules package.

Decides which fieldsets apply to the content currently being edited.

Modules of interest:
- types: Location type registry mapping stored rule types to context values.
- engine: OR-of-ANDs matching of location rule groups.
"""
