"""Internal models for operation descriptors, client state and responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class Parameter:
    name: str
    location: str
    required: bool = False
    schema_type: str = "string"


@dataclass(frozen=True)
class Operation:
    operation_id: str
    method: str
    path: str
    summary: str
    parameters: Tuple[Parameter, ...]
    input_model: Type[BaseModel]
    body_content_type: Optional[str] = None
    body_required: bool = False
    success_codes: FrozenSet[int] = frozenset({200})
    error_codes: FrozenSet[int] = frozenset()
    security: Tuple[Tuple[str, ...], ...] = ()

    @property
    def accepts_body(self) -> bool:
        return self.body_content_type is not None

    def parameter_names(self) -> FrozenSet[str]:
        return frozenset(param.name for param in self.parameters)


@dataclass(frozen=True)
class SecurityScheme:
    name: str
    type: str
    scheme: Optional[str] = None
    location: Optional[str] = None
    parameter_name: Optional[str] = None


DEFAULT_TIMEOUT_MS = 30000


@dataclass(frozen=True)
class ClientConfig:
    """Process-wide request settings, replaced wholesale on every change."""

    timeout_ms: float = DEFAULT_TIMEOUT_MS
    server_url: str = ""
    server_variables: Mapping[str, str] = field(default_factory=dict)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass(frozen=True)
class FetchResponse:
    status: int
    data: Any
    headers: Dict[str, str] = field(default_factory=dict)


class ErrorPayload(BaseModel):
    """FastSpring error envelope returned for documented failure statuses."""

    model_config = ConfigDict(extra="allow")

    action: Optional[Any] = None
    result: Optional[Any] = None
    error: Optional[Any] = None


class GenericErrorPayload(BaseModel):
    status: int
    reason: str = ""
    body: Any = None
