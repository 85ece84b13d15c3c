from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class AuthError(ApiError):
    """Authentication failed or session is invalid."""


class PermissionError(ApiError):
    """Merchant access denied by the backend."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class GraphQLError(ApiError):
    """HTTP 200 response carrying a GraphQL ``errors`` array."""


class PosError(Exception):
    """Base class for engine-side failures."""


class InvalidAmount(PosError, ValueError):
    """A money helper received a negative or non-finite amount."""


class EmptyCartError(PosError):
    """A sale was submitted with no lines."""
