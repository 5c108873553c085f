"""Request core: template resolution, auth, serialization and dispatch."""

from __future__ import annotations

import dataclasses
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .auth import AuthState, Credential, CredentialInjector
from .logging import redact_headers, redact_payload
from .models import ClientConfig, ErrorPayload, FetchResponse, GenericErrorPayload, Operation
from .openapi import OpenAPILoader, OperationRegistry

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "fastspring-client/1.0 (python-httpx)"
_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


class FetchError(Exception):
    """Non-2xx response, tagged with its status code."""

    def __init__(
        self,
        status: int,
        data: Any,
        headers: Optional[Dict[str, str]] = None,
        operation_id: str = "",
        documented: bool = False,
        reason: str = "",
    ) -> None:
        super().__init__(f"{operation_id or 'request'} failed with status {status}")
        self.status = status
        self.data = data
        self.headers = headers or {}
        self.operation_id = operation_id
        self.documented = documented
        self.payload: ErrorPayload | GenericErrorPayload
        if documented:
            self.payload = (
                ErrorPayload.model_validate(data) if isinstance(data, dict) else ErrorPayload(error=data)
            )
        else:
            self.payload = GenericErrorPayload(status=status, reason=reason, body=data)


class ParameterError(ValueError):
    def __init__(self, message: str, missing: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class UnknownOperationError(LookupError):
    pass


class APICore:
    def __init__(
        self,
        definition: Optional[Dict[str, Any]] = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        verify_ssl: bool = True,
        loader: Optional[OpenAPILoader] = None,
    ) -> None:
        loader = loader or OpenAPILoader()
        if definition is None:
            definition = loader.load_packaged()
        self.registry = OperationRegistry(loader.extract_operations(definition))
        self.servers = loader.extract_servers(definition)
        self.injector = CredentialInjector(loader.extract_security_schemes(definition))
        self.user_agent = user_agent
        self.verify_ssl = verify_ssl
        self._config = ClientConfig()
        self._auth = AuthState()
        if self.servers:
            self.set_server(self.servers[0].get("url", ""))

    @property
    def current_config(self) -> ClientConfig:
        return self._config

    @property
    def current_auth(self) -> AuthState:
        return self._auth

    def set_config(self, **options: Any) -> None:
        changes: Dict[str, Any] = {}
        for key, value in options.items():
            if key != "timeout":
                logger.warning("Ignoring unsupported config option: %s", key)
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(f"timeout must be a positive number of milliseconds, got {value!r}")
            changes["timeout_ms"] = float(value)
        if changes:
            self._config = dataclasses.replace(self._config, **changes)

    def set_auth(self, *values: Credential) -> None:
        self._auth = AuthState.from_values(*values)

    def set_server(self, url: str, variables: Optional[Mapping[str, Any]] = None) -> None:
        merged = self._server_defaults(url)
        merged.update({key: str(value) for key, value in (variables or {}).items()})

        resolved = _PLACEHOLDER.sub(lambda match: merged.get(match.group(1), match.group(0)), url)
        unresolved = _PLACEHOLDER.findall(resolved)
        if unresolved:
            raise ValueError(f"Missing server variable(s): {', '.join(unresolved)}")

        self._config = dataclasses.replace(
            self._config, server_url=resolved.rstrip("/"), server_variables=merged
        )

    def _server_defaults(self, url: str) -> Dict[str, str]:
        for server in self.servers:
            if server.get("url") != url:
                continue
            variables = server.get("variables") or {}
            return {
                name: str(variable["default"])
                for name, variable in variables.items()
                if isinstance(variable, dict) and variable.get("default") is not None
            }
        return {}

    async def fetch(
        self,
        path: str,
        method: str,
        body: Optional[Any] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> FetchResponse:
        operation = self.registry.get(path, method)
        if operation is None:
            raise UnknownOperationError(f"No operation registered for {method.upper()} {path}")

        # Read once; later setter calls must not leak into this request.
        config = self._config
        auth = self._auth

        body, params = self._prepare_params(operation, body, metadata)
        self._validate(operation, params)

        url, used_keys = self._build_url(config.server_url, operation, params)
        headers: Dict[str, str] = {"User-Agent": self.user_agent, "Accept": "application/json"}
        query: Dict[str, Any] = {}

        for parameter in operation.parameters:
            if parameter.name in used_keys or params.get(parameter.name) is None:
                continue
            value = params[parameter.name]
            if parameter.location == "query":
                query[parameter.name] = _format_query_value(value)
            elif parameter.location == "header":
                headers[parameter.name] = _format_value(value)

        unknown = set(params) - operation.parameter_names()
        if unknown:
            logger.debug("Dropping undeclared parameters for %s: %s", operation.operation_id, sorted(unknown))

        auth_parts = self.injector.build_auth(operation, auth)
        headers.update(auth_parts.headers)
        query.update(auth_parts.query)

        content, form_data = self._serialize_body(operation, body, headers)

        logger.debug(
            "Dispatching %s %s operation=%s headers=%s payload=%s",
            operation.method.upper(),
            url,
            operation.operation_id,
            redact_headers(headers),
            redact_payload(body),
        )

        async with httpx.AsyncClient(
            timeout=config.timeout_seconds,
            verify=self.verify_ssl,
            cookies=auth_parts.cookies or None,
        ) as client:
            response = await client.request(
                operation.method.upper(),
                url,
                headers=headers,
                params=query or None,
                content=content,
                data=form_data,
            )

        return self._handle_response(operation, response)

    def _prepare_params(
        self, operation: Operation, body: Optional[Any], metadata: Optional[Mapping[str, Any]]
    ) -> Tuple[Optional[Any], Dict[str, Any]]:
        if metadata is None and isinstance(body, Mapping):
            if not operation.accepts_body:
                return None, dict(body)
            if body and set(body).issubset(operation.parameter_names()):
                return None, dict(body)
        return body, dict(metadata or {})

    def _validate(self, operation: Operation, params: Dict[str, Any]) -> None:
        try:
            operation.input_model.model_validate(params)
        except ValidationError as exc:
            missing = [str(err["loc"][0]) for err in exc.errors() if err["type"] == "missing"]
            if missing:
                raise ParameterError(
                    f"Missing required parameter(s) for {operation.operation_id}: {', '.join(missing)}",
                    missing=missing,
                ) from exc
            raise ParameterError(f"Invalid parameter(s) for {operation.operation_id}: {exc}") from exc

    def _build_url(
        self, server_url: str, operation: Operation, params: Dict[str, Any]
    ) -> Tuple[str, set[str]]:
        used_keys: set[str] = set()
        missing: List[str] = []

        def _substitute(match: re.Match) -> str:
            name = match.group(1)
            value = params.get(name)
            if value is None:
                missing.append(name)
                return match.group(0)
            used_keys.add(name)
            return quote(_format_value(value), safe=",")

        resolved = _PLACEHOLDER.sub(_substitute, operation.path)
        if missing:
            raise ParameterError(
                f"Missing path placeholder(s) for {operation.operation_id}: {', '.join(missing)}",
                missing=missing,
            )
        return server_url.rstrip("/") + resolved, used_keys

    def _serialize_body(
        self, operation: Operation, body: Optional[Any], headers: Dict[str, str]
    ) -> Tuple[Optional[str | bytes], Optional[Dict[str, Any]]]:
        if body is None:
            return None, None

        content_type = operation.body_content_type or "application/json"
        if content_type == "application/x-www-form-urlencoded":
            headers["Content-Type"] = content_type
            return None, dict(body)
        if isinstance(body, (str, bytes)) and "json" not in content_type:
            headers["Content-Type"] = content_type
            return body, None
        headers["Content-Type"] = "application/json"
        return json.dumps(body), None

    def _handle_response(self, operation: Operation, response: httpx.Response) -> FetchResponse:
        data = self._parse_body(response)
        headers = dict(response.headers)
        status = response.status_code

        if 200 <= status < 300:
            return FetchResponse(status=status, data=data, headers=headers)

        documented = status in operation.error_codes
        logger.warning(
            "%s returned status %s (%s)",
            operation.operation_id,
            status,
            "documented" if documented else "undocumented",
        )
        raise FetchError(
            status=status,
            data=data,
            headers=headers,
            operation_id=operation.operation_id,
            documented=documented,
            reason=response.reason_phrase,
        )

    def _parse_body(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_format_value(item) for item in value)
    return str(value)


def _format_query_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_format_value(item) for item in value]
    return _format_value(value)
