"""
Shared configuration management for OpenFields.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="OPENFIELDS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment")
    log_level: str = Field(default="info", description="Root log level")

    # Location rules
    default_page_template: str = Field(
        default="default",
        description="Sentinel stored by location rules for the default page template"
    )
    default_post_format: str = Field(
        default="standard",
        description="Post format assumed when the host reports none"
    )

    # Persistence boundary
    strict_rule_loading: bool = Field(
        default=False,
        description="Raise on malformed stored rules instead of treating them as empty"
    )


class ServiceConfig(BaseConfig):
    """Component-specific configuration."""

    service_name: str

    def __init__(self, service_name: str, **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific component."""
    return ServiceConfig(service_name=service_name, **overrides)
