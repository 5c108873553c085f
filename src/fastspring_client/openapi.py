"""OpenAPI definition loader and operation parser."""

from __future__ import annotations

import json
import keyword
import logging
import time
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, create_model

from .models import Operation, Parameter, SecurityScheme


logger = logging.getLogger(__name__)

HTTP_METHODS = {"get", "post", "put", "patch", "delete", "head", "options"}
PACKAGED_DEFINITION = "openapi.json"


class OpenAPILoader:
    def __init__(self, cache_seconds: int = 3600) -> None:
        self.cache_seconds = cache_seconds
        self._cache: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    def load_packaged(self) -> Dict[str, Any]:
        source = resources.files(__package__).joinpath(PACKAGED_DEFINITION)
        return json.loads(source.read_text(encoding="utf-8"))

    def load_file(self, path: str | Path) -> Dict[str, Any]:
        with Path(path).open("r", encoding="utf-8") as handle:
            return json.load(handle)

    async def load_spec(self, url: str) -> Optional[Dict[str, Any]]:
        cached = self._cache.get(url)
        if cached and time.time() - cached[0] < self.cache_seconds:
            return cached[1]

        async with httpx.AsyncClient(timeout=30) as client:
            response = await client.get(url)
            if response.status_code != 200:
                logger.warning("Failed to fetch OpenAPI definition: %s (%s)", url, response.status_code)
                return None
            data = response.json()

        self._cache[url] = (time.time(), data)
        return data

    def extract_operations(self, spec: Dict[str, Any]) -> List[Operation]:
        operations: List[Operation] = []
        paths = spec.get("paths") or {}
        default_security = spec.get("security") or []

        for path, methods in paths.items():
            shared_parameters = (methods or {}).get("parameters") or []
            for method, operation in (methods or {}).items():
                if method.lower() not in HTTP_METHODS:
                    continue
                operation_id = operation.get("operationId") or self._fallback_operation_id(
                    method, path
                )
                summary = operation.get("summary") or operation.get("description") or ""
                parameters = self._merge_parameters(
                    shared_parameters, operation.get("parameters") or []
                )
                content_type, body_required = self._extract_body(operation.get("requestBody") or {})
                success_codes, error_codes = self._split_responses(operation.get("responses") or {})
                security = operation.get("security", default_security) or []

                operations.append(
                    Operation(
                        operation_id=operation_id,
                        method=method.lower(),
                        path=path,
                        summary=summary,
                        parameters=parameters,
                        input_model=self._build_input_model(operation_id, parameters),
                        body_content_type=content_type,
                        body_required=body_required,
                        success_codes=success_codes,
                        error_codes=error_codes,
                        security=tuple(tuple(requirement) for requirement in security),
                    )
                )

        return operations

    def extract_security_schemes(self, spec: Dict[str, Any]) -> Dict[str, SecurityScheme]:
        schemes = (spec.get("components") or {}).get("securitySchemes") or {}
        return {
            name: SecurityScheme(
                name=name,
                type=(definition.get("type") or "").lower(),
                scheme=(definition.get("scheme") or "").lower() or None,
                location=definition.get("in"),
                parameter_name=definition.get("name"),
            )
            for name, definition in schemes.items()
        }

    def extract_servers(self, spec: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [server for server in spec.get("servers") or [] if isinstance(server, dict)]

    def _merge_parameters(
        self, shared: Iterable[Dict[str, Any]], own: Iterable[Dict[str, Any]]
    ) -> Tuple[Parameter, ...]:
        merged: Dict[Tuple[str, str], Parameter] = {}
        for raw in [*shared, *own]:
            name = raw.get("name")
            if not name:
                continue
            location = raw.get("in", "query")
            merged[(name, location)] = Parameter(
                name=name,
                location=location,
                required=bool(raw.get("required", location == "path")),
                schema_type=(raw.get("schema") or {}).get("type", "string"),
            )
        return tuple(merged.values())

    def _extract_body(self, request_body: Dict[str, Any]) -> Tuple[Optional[str], bool]:
        content = request_body.get("content") or {}
        if not content:
            return None, False
        content_type = "application/json" if "application/json" in content else next(iter(content))
        return content_type, bool(request_body.get("required", False))

    def _split_responses(self, responses: Dict[str, Any]) -> Tuple[frozenset, frozenset]:
        success: set[int] = set()
        errors: set[int] = set()
        for code in responses:
            if not str(code).isdigit():
                continue
            status = int(code)
            if 200 <= status < 300:
                success.add(status)
            else:
                errors.add(status)
        return frozenset(success or {200}), frozenset(errors)

    def _build_input_model(
        self, operation_id: str, parameters: Tuple[Parameter, ...]
    ) -> type[BaseModel]:
        fields: Dict[str, Tuple[Any, Any]] = {}

        for parameter in parameters:
            field_type = self._schema_to_type(parameter.schema_type)
            field_name = self._field_name(parameter.name)
            if parameter.required:
                default = Field(..., alias=parameter.name)
            else:
                field_type = Optional[field_type]
                default = Field(None, alias=parameter.name)
            fields[field_name] = (field_type, default)

        model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)
        model_name = f"{self._sanitize_name(operation_id)}Metadata"
        return create_model(model_name, __config__=model_config, **fields)

    def _schema_to_type(self, schema_type: str) -> Any:
        if schema_type == "integer":
            return int
        if schema_type == "number":
            return float
        if schema_type == "boolean":
            return bool
        if schema_type == "array":
            return List[Any]
        if schema_type == "object":
            return Dict[str, Any]
        return str

    def _field_name(self, name: str) -> str:
        sanitized = self._sanitize_name(name)
        if keyword.iskeyword(sanitized) or hasattr(BaseModel, sanitized) or sanitized.startswith("_"):
            return f"param_{sanitized.lstrip('_')}"
        return sanitized

    def _fallback_operation_id(self, method: str, path: str) -> str:
        sanitized = path.strip("/").split("?")[0].replace("/", "_").replace("{", "").replace("}", "")
        return f"{method.lower()}_{sanitized or 'root'}"

    def _sanitize_name(self, name: str) -> str:
        return "".join(ch if ch.isalnum() else "_" for ch in name)


class OperationRegistry:
    """Immutable lookup of operation descriptors by path template and verb."""

    def __init__(self, operations: Iterable[Operation]) -> None:
        self._by_route: Dict[Tuple[str, str], Operation] = {}
        self._by_id: Dict[str, Operation] = {}
        for operation in operations:
            self._by_route[(operation.path, operation.method)] = operation
            self._by_id[operation.operation_id] = operation

    def __len__(self) -> int:
        return len(self._by_route)

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self._by_route.values())

    def get(self, path: str, method: str) -> Optional[Operation]:
        return self._by_route.get((path, method.lower()))

    def by_id(self, operation_id: str) -> Optional[Operation]:
        return self._by_id.get(operation_id)
