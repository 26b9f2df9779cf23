"""
Location types: how a location rule's subject is read from a placement context.
"""

from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass

from shared.errors import ConfigurationError
from shared.logging import get_logger
from ..rules.models import LocationTypeInfo, PlacementContext


Resolver = Callable[[PlacementContext], Any]
OperandNormalizer = Callable[[str], str]


@dataclass(frozen=True)
class LocationType:
    """A registered location type."""
    key: str
    label: str
    resolver: Resolver
    normalize: Optional[OperandNormalizer] = None


class LocationTypeRegistry:
    """Registry of location types keyed by the stored rule ``type``."""

    def __init__(self):
        self.logger = get_logger("fieldsets.location_types")
        self._types: Dict[str, LocationType] = {}

    def register(
        self,
        key: str,
        label: str,
        resolver: Resolver,
        normalize: Optional[OperandNormalizer] = None,
    ) -> LocationType:
        """Register or replace a location type."""
        if not key:
            raise ConfigurationError("Location type key is required")
        if not callable(resolver):
            raise ConfigurationError("Location type resolver must be callable", {"key": key})

        location_type = LocationType(key=key, label=label, resolver=resolver, normalize=normalize)
        if key in self._types:
            self.logger.info("Location type replaced", key=key)
        self._types[key] = location_type
        return location_type

    def get(self, key: str) -> Optional[LocationType]:
        return self._types.get(key)

    def describe(self) -> List[LocationTypeInfo]:
        """Location types as listed in the builder."""
        return [LocationTypeInfo(key=t.key, label=t.label) for t in self._types.values()]


def create_default_registry(
    default_page_template: str = "default",
    default_post_format: str = "standard",
) -> LocationTypeRegistry:
    """Registry holding the built-in location types."""
    registry = LocationTypeRegistry()

    def template_sentinel(value: str) -> str:
        # The host reports the default template as '', rules store the sentinel
        return default_page_template if value in ("", default_page_template) else value

    def post_format(context: PlacementContext) -> str:
        return context.post_format or default_post_format

    def format_sentinel(value: str) -> str:
        return value or default_post_format

    def user_role(context: PlacementContext) -> Any:
        if context.user_roles:
            return list(context.user_roles)
        return context.user_role

    registry.register("post_type", "Post Type", lambda context: context.post_type)
    registry.register(
        "page_template",
        "Page Template",
        lambda context: template_sentinel(context.page_template or ""),
        normalize=template_sentinel,
    )
    registry.register("post_category", "Post Category", lambda context: list(context.categories))
    registry.register("post_format", "Post Format", post_format, normalize=format_sentinel)
    registry.register("taxonomy", "Taxonomy", lambda context: list(context.taxonomy_terms))
    registry.register("user_role", "User Role", user_role)
    registry.register("options_page", "Options Page", lambda context: context.options_page)

    return registry
