"""
Response envelope handling.

Pylon wraps most payloads as ``{"data": ...}``; some endpoints return the bare
object or array. ``unwrap`` strips the envelope and ``decode`` turns the payload
into a Resource, a Collection or a raw ``(payload, response)`` pair, always
keeping the originating ApiResponse reachable.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, NamedTuple, Optional, Type

from .exceptions import ApiError
from .models import Collection, Resource

RATE_LIMIT_HEADERS = ('x-rate-limit-limit', 'x-rate-limit-remaining', 'x-rate-limit-reset')


class RateLimit(NamedTuple):
    limit: Optional[str]
    remaining: Optional[str]
    reset: Optional[str]


@dataclass(frozen=True)
class ApiResponse:
    """Status, headers and decoded body of one HTTP exchange."""
    method: str
    url: str
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code <= 299

    @property
    def rate_limit(self) -> RateLimit:
        return RateLimit(*(self.header(name) for name in RATE_LIMIT_HEADERS))

    def header(self, name: str) -> Optional[str]:
        # requests hands us a CaseInsensitiveDict; plain dicts from stubs are not
        value = self.headers.get(name)
        if value is not None:
            return value
        lowered = name.lower()
        for key, val in self.headers.items():
            if key.lower() == lowered:
                return val
        return None


def unwrap(body: Any) -> Any:
    if isinstance(body, dict) and 'data' in body:
        return body['data']
    return body


def decode(response: ApiResponse, model: Optional[Type[Resource]] = None, collection: bool = False) -> Any:
    payload = unwrap(response.body)
    if model is None:
        return payload, response
    if collection:
        if not isinstance(payload, list):
            raise ApiError(f'Expected a list payload, got {type(payload).__name__}', response)
        if not all(isinstance(item, dict) for item in payload):
            raise ApiError('Expected a list of objects', response)
        return Collection(payload, model, response)
    if payload is None:
        return model({}, response)
    if not isinstance(payload, dict):
        raise ApiError(f'Expected an object payload, got {type(payload).__name__}', response)
    return model(payload, response)
