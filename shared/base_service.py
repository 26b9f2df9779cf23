"""
Base component class for OpenFields services.
"""

from typing import Optional

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self.logger = get_logger(service_name)

        # Configure logging
        configure_logging(service_name, self.config.log_level)

    def get_service_info(self):
        """Describe the component for diagnostics."""
        return {
            "service": self.service_name,
            "env": self.config.env,
            "log_level": self.config.log_level,
        }
