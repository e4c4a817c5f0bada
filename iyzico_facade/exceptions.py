"""Exception hierarchy for the iyzico facade.

Error codes follow the pattern IYZ[NUMBER]. A signature mismatch is not an
error: verification reports it as ``False``.
"""

from typing import Any, Dict, Optional


class IyzicoError(Exception):
    """Base exception for all iyzico facade errors."""

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a plain error payload."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "details": self.details,
            }
        }


class InvalidInputError(IyzicoError, ValueError):
    """Required input (secret key, price, payment id...) is missing."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"{field} is required",
            code="IYZ001",
            details={"field": field},
        )


class MissingSignatureError(IyzicoError):
    """The counterparty did not send a signature to verify."""

    def __init__(self, source: str):
        super().__init__(
            message=f"{source} is missing",
            code="IYZ002",
            details={"source": source},
        )


class ConfigurationError(IyzicoError):
    """Settings are incomplete for the requested operation."""

    def __init__(self, parameter: str):
        super().__init__(
            message=f"Configuration error: {parameter} is not configured",
            code="IYZ003",
            details={"parameter": parameter},
        )
