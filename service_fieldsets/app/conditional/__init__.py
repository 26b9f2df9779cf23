"""
Conditional logic package: per-field visibility from sibling field values.
"""
