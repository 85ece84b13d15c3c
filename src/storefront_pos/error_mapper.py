from __future__ import annotations

from typing import Any, Mapping, Sequence

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    GraphQLError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

_GRAPHQL_CODES: dict[str, type[ApiError]] = {
    "UNAUTHENTICATED": AuthError,
    "FORBIDDEN": PermissionError,
    "NOT_FOUND": NotFoundError,
    "BAD_USER_INPUT": ValidationError,
    "GRAPHQL_VALIDATION_FAILED": ValidationError,
}


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    code = str(payload.get("code") or "HTTP_ERROR")
    message = str(payload.get("message") or "Request failed")
    details = payload.get("details")
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped: type[ApiError]
    if status_code == 401:
        mapped = AuthError
    elif status_code == 403:
        mapped = PermissionError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = ValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code == 429:
        mapped = RateLimitError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = ApiError
    return mapped(
        code=code,
        message=message,
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )


def map_graphql_errors(errors: Sequence[Mapping[str, Any]], trace_id: str | None) -> ApiError:
    """Collapse a GraphQL ``errors`` array into a single ApiError.

    The first error decides the exception type and message; the full list is
    kept in ``details`` so nothing the server said is lost.
    """
    first = errors[0] if errors else {}
    extensions = first.get("extensions") or {}
    code = str(extensions.get("code") or "GRAPHQL_ERROR") if isinstance(extensions, Mapping) else "GRAPHQL_ERROR"
    message = str(first.get("message") or "GraphQL request failed")
    mapped = _GRAPHQL_CODES.get(code, GraphQLError)
    return mapped(
        code=code,
        message=message,
        details=[dict(error) for error in errors],
        trace_id=trace_id,
        status_code=200,
        raw_payload={"errors": [dict(error) for error in errors]},
    )
