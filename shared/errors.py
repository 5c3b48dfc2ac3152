"""
Shared error handling for the Authority engine.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class AuthorityException(Exception):
    """Base exception for the Authority engine."""

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


class AliasNotFoundError(AuthorityException):
    """Lookup of an alias that was never registered."""

    def __init__(self, name: str, details: Optional[Dict[str, Any]] = None):
        self.name = name
        super().__init__("ALIAS_NOT_FOUND", f"Alias '{name}' is not registered", details)


class UnresolvableResourceError(AuthorityException):
    """A resource value whose type name cannot be determined."""

    def __init__(self, message: str = "Cannot resolve resource type", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNRESOLVABLE_RESOURCE", message, details)


class InvalidRuleError(AuthorityException):
    """Rule construction errors."""

    def __init__(self, message: str = "Invalid rule", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_RULE", message, details)


class ConfigurationError(AuthorityException):
    """Configuration errors."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
