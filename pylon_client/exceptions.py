from __future__ import annotations
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .response import ApiResponse


class PylonError(Exception):
    """Base class for every error raised by the client."""

    def __init__(self, message: str = '', response: Optional['ApiResponse'] = None):
        super().__init__(message)
        self.message = message
        self.response = response

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class InvalidArgumentError(PylonError, ValueError):
    """Local parameter validation failure. Raised before any network call."""


class AuthenticationError(PylonError):
    """Invalid or missing API key (401)."""


class ResourceNotFoundError(PylonError):
    """Requested resource does not exist (404)."""


class ValidationError(PylonError):
    """Request rejected by the API's validation (422)."""


class ApiError(PylonError):
    """Generic API error (5xx and 4xx not otherwise classified)."""


class RateLimitError(ApiError):
    """Rate limiting encountered (429)."""


DEFAULT_MESSAGES = {
    401: 'Invalid API key',
    404: 'Resource not found',
    422: 'Validation error',
    429: 'Rate limit exceeded',
}

ERROR_CLASSES = {
    401: AuthenticationError,
    404: ResourceNotFoundError,
    422: ValidationError,
    429: RateLimitError,
}


def parse_error_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    errors = body.get('errors')
    if isinstance(errors, list) and errors:
        return str(errors[0])
    error = body.get('error')
    if isinstance(error, str):
        return error
    return None


def _default_message(status: int) -> str:
    if status in DEFAULT_MESSAGES:
        return DEFAULT_MESSAGES[status]
    if status >= 500:
        return 'Internal server error'
    return f'HTTP {status}'


def _rate_limit_suffix(response: 'ApiResponse') -> str:
    rl = response.rate_limit
    parts = [f'{name}={value}' for name, value in (('limit', rl.limit), ('remaining', rl.remaining), ('reset', rl.reset)) if value is not None]
    return f" ({', '.join(parts)})" if parts else ''


def error_for_response(response: 'ApiResponse') -> PylonError:
    """Map a non-2xx response onto the error taxonomy.

    The message comes from ``errors[0]`` or ``error`` in the JSON body when the
    API provides one, otherwise from a per-status default. The response is
    attached to the returned error so callers can still read rate-limit headers.
    """
    status = response.status_code
    message = parse_error_message(response.body) or _default_message(status)
    if status == 429:
        message += _rate_limit_suffix(response)
    cls = ERROR_CLASSES.get(status, ApiError)
    return cls(message, response)
