"""Async client for the FastSpring REST API."""

from .client import FastSpring, get_client
from .core import APICore, FetchError, ParameterError, UnknownOperationError
from .models import ErrorPayload, FetchResponse, GenericErrorPayload

__all__ = [
    "APICore",
    "ErrorPayload",
    "FastSpring",
    "FetchError",
    "FetchResponse",
    "GenericErrorPayload",
    "ParameterError",
    "UnknownOperationError",
    "get_client",
]
