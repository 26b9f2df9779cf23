"""
Rule data models shared by the location and conditional logic engines.
"""

from typing import Any, List, Mapping, Optional, Sequence, Union
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field


class Operator(str, Enum):
    """Rule operators."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


# Operators that ignore the operand
UNARY_OPERATORS = frozenset({Operator.IS_EMPTY, Operator.IS_NOT_EMPTY})


@dataclass(frozen=True)
class Rule:
    """Atomic test of one subject against an operand.

    ``operator`` is kept as the stored string so that a rule carrying an
    unrecognized operator can still be represented and evaluated (to false).
    """
    subject: str
    operator: str
    operand: Optional[str] = None


RuleGroup = Sequence[Rule]
RuleGroupSet = Sequence[RuleGroup]

FieldValue = Union[None, str, int, float, bool, Sequence[Any]]
FieldValueSnapshot = Mapping[str, FieldValue]


@dataclass(frozen=True)
class PlacementContext:
    """Where content is currently being edited or rendered."""
    post_type: str = ""
    page_template: str = ""
    categories: Sequence[int] = ()
    post_format: str = ""
    user_role: str = ""
    taxonomy_terms: Sequence[int] = ()
    user_roles: Sequence[str] = ()
    options_page: str = ""
    post_id: Optional[int] = None


@dataclass
class FieldDefinition:
    """A field and its conditional display rules."""
    name: str
    type: str = "text"
    label: Optional[str] = None
    conditional_logic: List[List[Rule]] = field(default_factory=list)


@dataclass
class Fieldset:
    """A group of fields sharing location rules."""
    id: int
    title: str
    field_key: str
    status: str = "active"
    menu_order: int = 0
    location_rules: List[List[Rule]] = field(default_factory=list)
    fields: List[FieldDefinition] = field(default_factory=list)


class StoredLocationRule(BaseModel):
    """Location rule as persisted with a fieldset."""
    type: Optional[str] = Field(None, description="Location type key")
    operator: Optional[str] = Field("==", description="Stored operator")
    value: Optional[Union[str, int, float]] = Field(None, description="Comparison value")


class StoredLocationGroup(BaseModel):
    """Location rule group as persisted with a fieldset."""
    id: Optional[Union[str, int]] = Field(None, description="Builder-assigned group id")
    rules: List[Any] = Field(default_factory=list, description="ANDed rules")


class StoredConditionalRule(BaseModel):
    """Conditional logic rule as persisted with a field."""
    field: Optional[str] = Field(None, description="Identifier of the sibling field")
    operator: Optional[str] = Field(None, description="Stored operator")
    value: Optional[Union[str, int, float]] = Field(None, description="Comparison value")


class LegacyConditionalLogic(BaseModel):
    """Single-group conditional config written by older builders."""
    enabled: bool = Field(True, description="Whether the logic is active")
    action: str = Field("show", description="show or hide when rules pass")
    relation: str = Field("and", description="and or or")
    rules: List[StoredConditionalRule] = Field(default_factory=list, description="Rules")


class LocationTypeInfo(BaseModel):
    """Location type as listed for the builder."""
    key: str
    label: str
