"""
Custom exception classes for the application.
"""

from typing import Any, Dict, List, Optional


class ConciergeException(Exception):
    """Base exception class for Shop Concierge."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ConciergeException):
    """Exception raised for invalid user input."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        self.field = field
        super().__init__(message, error_code="VALIDATION_ERROR", **kwargs)


class ConfigurationError(ConciergeException):
    """Exception raised when required settings are missing or invalid."""

    def __init__(self, message: str = "Invalid configuration", missing: Optional[List[str]] = None, **kwargs):
        self.missing = missing or []
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)


class ExternalServiceError(ConciergeException):
    """Exception raised for external service errors."""

    def __init__(
        self,
        message: str = "External service error",
        service_name: Optional[str] = None,
        **kwargs
    ):
        self.service_name = service_name
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", **kwargs)


class LLMError(ExternalServiceError):
    """Exception raised when the model service fails."""

    def __init__(
        self,
        message: str = "LLM processing error",
        model_name: Optional[str] = None,
        **kwargs
    ):
        self.model_name = model_name
        super().__init__(message, service_name="llm", **kwargs)
        self.error_code = "LLM_ERROR"


class UnknownToolError(ConciergeException):
    """Exception raised when the model requests a tool that is not registered."""

    def __init__(self, tool_name: str, **kwargs):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}", error_code="UNKNOWN_TOOL", **kwargs)
