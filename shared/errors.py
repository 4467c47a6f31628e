"""
Shared error handling for the Access Shield.
"""

from typing import Dict, Any, Optional, Sequence
from pydantic import BaseModel
from opentelemetry import trace


# Protocol error codes understood by transport layers, with their HTTP status.
PROTOCOL_ERROR_STATUS: Dict[str, int] = {
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "METHOD_NOT_SUPPORTED": 405,
    "NOT_ACCEPTABLE": 406,
    "TIMEOUT": 408,
    "CONFLICT": 409,
    "PRECONDITION_FAILED": 412,
    "PAYLOAD_TOO_LARGE": 413,
    "UNSUPPORTED_MEDIA_TYPE": 415,
    "UNPROCESSABLE_CONTENT": 422,
    "TOO_MANY_REQUESTS": 429,
    "CLIENT_CLOSED_REQUEST": 499,
    "INTERNAL_SERVER_ERROR": 500,
    "NOT_IMPLEMENTED": 501,
    "BAD_GATEWAY": 502,
    "SERVICE_UNAVAILABLE": 503,
    "GATEWAY_TIMEOUT": 504,
}


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for Access Shield components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        # Get trace ID from current span
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthorizationError(AccessLayerException):
    """Authorization-related errors."""

    def __init__(self, message: str = "Authorization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_ERROR", message, details)


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ShieldError(AuthorizationError):
    """Access denied by a shield rule.

    Carries the human-readable reason and the procedure path the
    request was made against.
    """

    def __init__(self, message: str, path: Sequence[str] = ()):
        self.path = tuple(path)
        super().__init__(message, {"path": ".".join(self.path)})


class ProtocolError(AccessLayerException):
    """Denial tagged with a protocol-level error code.

    Transport layers translate ``code`` into a response status, e.g.
    ``FORBIDDEN`` becomes HTTP 403.
    """

    def __init__(self, code: str, message: str, status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)
        self.status = status if status is not None else PROTOCOL_ERROR_STATUS.get(code, 500)


class RuleTreeError(ValidationError):
    """Malformed rule tree, raised once when a shield is built."""

    def __init__(self, path: Sequence[str], reason: str = "Expected rule or nested rules object"):
        self.path = tuple(path)
        self.reason = reason
        dotted = ".".join(self.path)
        super().__init__(f"Invalid rule at path {dotted}: {reason}", {"path": dotted})
