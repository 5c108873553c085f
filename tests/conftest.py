from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from fastspring_client.client import FastSpring


class DummyHTTPResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        text: str = "",
        headers: Optional[Dict[str, str]] = None,
        reason_phrase: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.headers = dict(headers or {})
        if json_data is not None:
            self.text = json.dumps(json_data)
            self.headers.setdefault("content-type", "application/json")
        else:
            self.text = text
        self.content = self.text.encode("utf-8")
        self._json_data = json_data

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("No JSON data")
        return self._json_data


class DummyAsyncClient:
    def __init__(self, transport: "DummyTransport", client_kwargs: Dict[str, Any]) -> None:
        self._transport = transport
        self._client_kwargs = client_kwargs

    async def __aenter__(self) -> "DummyAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        return None

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        content: Any = None,
        data: Any = None,
    ) -> DummyHTTPResponse:
        self._transport.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers or {},
                "params": params,
                "content": content,
                "data": data,
                "client_kwargs": self._client_kwargs,
            }
        )
        if self._transport.gate is not None:
            await self._transport.gate.wait()
        return self._transport.next_response()

    async def get(self, url: str) -> DummyHTTPResponse:
        self._transport.calls.append({"method": "GET", "url": url, "client_kwargs": self._client_kwargs})
        return self._transport.next_response()


class DummyTransport:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.responses: List[DummyHTTPResponse] = []
        self.gate: Optional[asyncio.Event] = None

    def queue(self, *responses: DummyHTTPResponse) -> None:
        self.responses.extend(responses)

    def next_response(self) -> DummyHTTPResponse:
        if self.responses:
            return self.responses.pop(0)
        return DummyHTTPResponse(200, {"result": "success"})

    def client(self, **kwargs: Any) -> DummyAsyncClient:
        return DummyAsyncClient(self, kwargs)


@pytest.fixture
def http(monkeypatch) -> DummyTransport:
    transport = DummyTransport()
    monkeypatch.setattr(httpx, "AsyncClient", transport.client)
    return transport


@pytest.fixture
def client() -> FastSpring:
    return FastSpring()


def make_definition(
    schemes: Optional[Dict[str, Any]] = None,
    security: Optional[List[Dict[str, List[str]]]] = None,
    servers: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    return {
        "openapi": "3.0.3",
        "info": {"title": "test", "version": "1"},
        "servers": servers if servers is not None else [{"url": "https://api.example.com"}],
        "security": security or [],
        "components": {"securitySchemes": schemes or {}},
        "paths": {
            "/things/{thing_id}": {
                "parameters": [
                    {"name": "thing_id", "in": "path", "required": True, "schema": {"type": "string"}}
                ],
                "get": {
                    "operationId": "getThing",
                    "parameters": [
                        {"name": "q", "in": "query", "schema": {"type": "string"}},
                        {"name": "X-Trace", "in": "header", "schema": {"type": "string"}},
                    ],
                    "responses": {"200": {"description": "ok"}, "404": {"description": "missing"}},
                },
            },
            "/things": {
                "post": {
                    "requestBody": {
                        "required": True,
                        "content": {"application/x-www-form-urlencoded": {"schema": {"type": "object"}}},
                    },
                    "responses": {"201": {"description": "created"}},
                },
            },
        },
    }
