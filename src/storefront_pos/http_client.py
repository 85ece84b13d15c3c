from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Mapping
from urllib.parse import urljoin

import requests

from .config import ClientConfig
from .error_mapper import map_error, map_graphql_errors
from .exceptions import TransportError

TRACE_HEADER = "X-Trace-ID"
TRACE_HEADER_ALIASES = (TRACE_HEADER, "X-Trace-Id", "x-trace-id")

ResponseHook = Callable[[requests.Response], None]


@dataclass
class LastOperation:
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    config: ClientConfig
    session: requests.Session | None = None
    access_token: str | None = None
    trace_id: str | None = None
    after_response: ResponseHook | None = None
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()

    def _build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def _ensure_trace(self) -> str:
        if not self.trace_id:
            self.trace_id = str(uuid.uuid4())
        return self.trace_id

    def _update_trace(self, headers: Mapping[str, str]) -> None:
        for key in TRACE_HEADER_ALIASES:
            trace_id = headers.get(key)
            if trace_id:
                self.trace_id = trace_id
                return

    def graphql(
        self,
        query: str,
        variables: Mapping[str, Any] | None = None,
        *,
        operation: str = "unknown",
        mutation: bool = False,
    ) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` object.

        Queries are retried on transport failures and 5xx responses; mutations
        are sent exactly once.
        """
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        headers[TRACE_HEADER] = self._ensure_trace()
        body = {"query": query, "variables": dict(variables or {}), "operationName": operation}
        url = self._build_url(self.config.graphql_path)

        attempts = 1 if mutation else self.config.retries + 1
        started = time.monotonic()
        response: requests.Response | None = None
        for attempt in range(attempts):
            try:
                response = self.session.post(
                    url,
                    headers=headers,
                    json=body,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= attempts - 1:
                    self._record(operation, started, "error")
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        trace_id=self.trace_id,
                        status_code=0,
                    ) from exc
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError("HTTP request failed without response")

        if self.after_response:
            self.after_response(response)
        self._update_trace(response.headers)

        try:
            payload = response.json()
        except json.JSONDecodeError:
            payload = {"message": response.text}

        if not response.ok:
            self._record(operation, started, "error")
            raise map_error(response.status_code, payload if isinstance(payload, dict) else {}, self.trace_id)
        if not isinstance(payload, dict):
            self._record(operation, started, "error")
            raise ValueError("Expected GraphQL response to be a JSON object")
        errors = payload.get("errors")
        if errors:
            self._record(operation, started, "error")
            raise map_graphql_errors(errors, self.trace_id)
        self._record(operation, started, "success")
        data = payload.get("data")
        return data if isinstance(data, dict) else {}

    def _record(self, operation: str, started: float, result: str) -> None:
        self.last_operation = LastOperation(
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=self.trace_id,
        )
