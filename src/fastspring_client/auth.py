"""Credential storage and authentication scheme inference."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from .models import Operation, SecurityScheme


logger = logging.getLogger(__name__)

Credential = Union[str, int]


@dataclass(frozen=True)
class AuthState:
    values: Tuple[str, ...] = ()

    @classmethod
    def from_values(cls, *values: Credential) -> "AuthState":
        if not values:
            raise ValueError("auth() requires at least one credential value")
        if len(values) > 2:
            raise ValueError("auth() accepts at most two credential values")
        return cls(values=tuple(str(value) for value in values))

    @property
    def is_set(self) -> bool:
        return bool(self.values)


@dataclass
class AuthParts:
    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)


class CredentialInjector:
    def __init__(self, schemes: Mapping[str, SecurityScheme]) -> None:
        self.schemes = schemes

    def build_auth(self, operation: Operation, auth: AuthState) -> AuthParts:
        parts = AuthParts()
        if not auth.is_set or not operation.security:
            return parts

        requirement = self._select_requirement(operation.security, auth)
        if requirement is None:
            logger.debug("No security requirement satisfiable for %s", operation.operation_id)
            return parts

        for scheme_name in requirement:
            self._apply(self.schemes[scheme_name], auth, parts)
        return parts

    def _select_requirement(
        self, security: Sequence[Tuple[str, ...]], auth: AuthState
    ) -> Optional[Tuple[str, ...]]:
        for requirement in security:
            if not requirement:
                continue
            if all(self._can_satisfy(name, auth) for name in requirement):
                return requirement
        return None

    def _can_satisfy(self, scheme_name: str, auth: AuthState) -> bool:
        scheme = self.schemes.get(scheme_name)
        if scheme is None:
            return False
        if scheme.type == "http":
            return scheme.scheme in {"basic", "bearer"}
        if scheme.type == "oauth2":
            return True
        if scheme.type == "apikey":
            return scheme.location in {"header", "query", "cookie"} and bool(scheme.parameter_name)
        return False

    def _apply(self, scheme: SecurityScheme, auth: AuthState, parts: AuthParts) -> None:
        first = auth.values[0]
        if scheme.type == "http" and scheme.scheme == "basic":
            password = auth.values[1] if len(auth.values) == 2 else ""
            token = base64.b64encode(f"{first}:{password}".encode("utf-8")).decode("ascii")
            parts.headers["Authorization"] = f"Basic {token}"
        elif scheme.type == "oauth2" or (scheme.type == "http" and scheme.scheme == "bearer"):
            parts.headers["Authorization"] = f"Bearer {first}"
        elif scheme.type == "apikey":
            key_name = scheme.parameter_name or "Authorization"
            if scheme.location == "query":
                parts.query[key_name] = first
            elif scheme.location == "cookie":
                parts.cookies[key_name] = first
            else:
                parts.headers[key_name] = first
