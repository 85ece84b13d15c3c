from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient

    def _query(self, document: str, variables: Mapping[str, Any], *, operation: str) -> dict[str, Any]:
        return self.http.graphql(document, variables, operation=operation)

    def _mutate(self, document: str, variables: Mapping[str, Any], *, operation: str) -> dict[str, Any]:
        return self.http.graphql(document, variables, operation=operation, mutation=True)


def _coerce_model(value: Any, model_type: type[Any]):
    if isinstance(value, model_type):
        return value
    return model_type.model_validate(value)
