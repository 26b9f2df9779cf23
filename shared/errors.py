"""
Shared error handling for OpenFields.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class OpenFieldsException(Exception):
    """Base exception for OpenFields components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(OpenFieldsException):
    """Stored rule data does not have the expected shape."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class MigrationError(OpenFieldsException):
    """Legacy rule data cannot be converted to rule groups."""

    def __init__(self, message: str = "Migration failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("MIGRATION_ERROR", message, details)


class ConfigurationError(OpenFieldsException):
    """Invalid component configuration."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
