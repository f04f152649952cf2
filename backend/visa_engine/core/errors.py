"""Engine exception hierarchy."""

from typing import Any, Optional


class VisaEngineError(Exception):
    """
    Base error carrying an HTTP-style status code and a machine-readable code.

    Attributes:
        message: Human-readable description
        status_code: Status code the HTTP layer should answer with
        code: Stable error code for clients
        details: Optional structured context
    """

    status_code: int = 500
    code: str = "ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for a failure result."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(VisaEngineError):
    """Unsupported visa code or missing/malformed rule set. Never retried."""

    status_code = 500
    code = "CONFIGURATION_ERROR"


class ValidationError(VisaEngineError):
    """Malformed or missing applicant data."""

    status_code = 400
    code = "VALIDATION_ERROR"


class DocumentValidationError(ValidationError):
    """Malformed document descriptors."""

    code = "DOCUMENT_VALIDATION_ERROR"


class InternalError(VisaEngineError):
    """Unexpected failure inside a plugin, cache or tracker."""

    status_code = 500
    code = "INTERNAL_ERROR"
