"""
Rules package.

Defines the rule model shared by location rules and conditional logic and
the primitives both engines are built on. Rule group sets are ORs of
groups; each group is an AND of rules.

Modules of interest:
- models: Rule, placement context and stored rule shapes.
- evaluator: Single-rule evaluation with explicit value coercion.
- groups: OR-of-ANDs evaluation helpers.
- normalization: Conversion from persisted rule data to rule groups.

Evaluation is pure: no caching and no state carried between calls.
"""
