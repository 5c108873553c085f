from __future__ import annotations

import asyncio
import logging

import pytest

from conftest import DummyHTTPResponse, make_definition
from fastspring_client.core import APICore, FetchError, ParameterError, UnknownOperationError


@pytest.mark.asyncio
async def test_missing_path_placeholder_raises_before_dispatch(client, http) -> None:
    with pytest.raises(ParameterError) as excinfo:
        await client.get_one_account({})

    assert excinfo.value.missing == ["account_id"]
    assert http.calls == []


@pytest.mark.asyncio
async def test_missing_query_template_value_raises(client, http) -> None:
    with pytest.raises(ParameterError) as excinfo:
        await client.get_all_products_price_with_country_and_currency({"country": "DE"})

    assert "currency" in excinfo.value.missing
    assert http.calls == []


@pytest.mark.asyncio
async def test_unknown_route_is_rejected(client, http) -> None:
    with pytest.raises(UnknownOperationError):
        await client.core.fetch("/accounts/{account_id}", "patch", {"account_id": "a"})


@pytest.mark.asyncio
async def test_timeout_config_applies_to_subsequent_calls(client, http) -> None:
    await client.get_jobs()
    client.config(timeout=5000)
    await client.get_jobs()

    timeouts = [call["client_kwargs"]["timeout"] for call in http.calls]
    assert timeouts == [30.0, 5.0]


@pytest.mark.asyncio
async def test_config_change_does_not_reach_dispatched_call(client, http) -> None:
    http.gate = asyncio.Event()
    client.config(timeout=5000)

    in_flight = asyncio.create_task(client.get_one_account({"account_id": "a1"}))
    while not http.calls:
        await asyncio.sleep(0)

    client.config(timeout=1000)
    client.auth("later-user", "later-pass")
    http.gate.set()
    await in_flight
    await client.get_one_account({"account_id": "a2"})

    first, second = http.calls
    assert first["client_kwargs"]["timeout"] == 5.0
    assert "Authorization" not in first["headers"]
    assert second["client_kwargs"]["timeout"] == 1.0
    assert second["headers"]["Authorization"].startswith("Basic ")


@pytest.mark.parametrize("value", [0, -5, "5000", True])
def test_config_rejects_invalid_timeout(client, value) -> None:
    with pytest.raises(ValueError):
        client.config(timeout=value)


def test_config_ignores_unknown_options(client, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        client.config(retries=3)

    assert client.core.current_config.timeout_ms == 30000
    assert "retries" in caplog.text


def test_server_substitutes_variables_and_defaults() -> None:
    core = APICore(
        make_definition(
            servers=[
                {
                    "url": "https://{region}.api.example.com/{basePath}",
                    "variables": {"region": {"default": "us"}, "basePath": {"default": "v1"}},
                }
            ]
        )
    )
    assert core.current_config.server_url == "https://us.api.example.com/v1"

    core.set_server("https://{region}.api.example.com/{basePath}", {"region": "eu"})

    assert core.current_config.server_url == "https://eu.api.example.com/v1"


def test_server_accepts_fully_qualified_url(client) -> None:
    client.server("https://sandbox.example.com/")

    assert client.core.current_config.server_url == "https://sandbox.example.com"


def test_server_with_unfilled_variable_raises(client) -> None:
    with pytest.raises(ValueError):
        client.server("https://{tenant}.example.com")


@pytest.mark.asyncio
async def test_server_override_applies_to_requests(client, http) -> None:
    client.server("https://sandbox.example.com")

    await client.get_quote_by_id({"id": "q1"})

    assert http.calls[0]["url"] == "https://sandbox.example.com/quotes/q1"


@pytest.mark.asyncio
async def test_declared_parameters_are_routed_by_location(http) -> None:
    core = APICore(make_definition())

    await core.fetch(
        "/things/{thing_id}",
        "get",
        {"thing_id": "a b/c", "q": "search", "X-Trace": "trace-1", "unknown": "dropped"},
    )

    call = http.calls[0]
    assert call["url"] == "https://api.example.com/things/a%20b%2Fc"
    assert call["params"] == {"q": "search"}
    assert call["headers"]["X-Trace"] == "trace-1"
    assert "unknown" not in call["headers"]


@pytest.mark.asyncio
async def test_form_encoded_body(http) -> None:
    http.queue(DummyHTTPResponse(201, {"created": True}))
    core = APICore(make_definition())

    response = await core.fetch("/things", "post", {"name": "widget"})

    call = http.calls[0]
    assert response.status == 201
    assert call["data"] == {"name": "widget"}
    assert call["content"] is None
    assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"


@pytest.mark.asyncio
async def test_fallback_operation_id_used_in_errors(http) -> None:
    http.queue(DummyHTTPResponse(422, {"message": "invalid"}))
    core = APICore(make_definition())

    with pytest.raises(FetchError) as excinfo:
        await core.fetch("/things", "post", {"name": "widget"})

    assert excinfo.value.operation_id == "post_things"
    assert excinfo.value.documented is False
    assert excinfo.value.payload.body == {"message": "invalid"}


@pytest.mark.asyncio
async def test_body_keys_matching_parameters_are_read_as_metadata(client, http) -> None:
    await client.core.fetch("/coupons/{coupon_id}/codes", "get", {"coupon_id": "C1"})
    await client.core.fetch("/accounts", "post", {"contact": {"email": "a@example.com"}})

    first, second = http.calls
    assert first["url"].endswith("/coupons/C1/codes")
    assert first["content"] is None
    assert second["content"] == '{"contact": {"email": "a@example.com"}}'


@pytest.mark.asyncio
async def test_invalid_parameter_type_raises(client, http) -> None:
    with pytest.raises(ParameterError):
        await client.look_up_accounts_by_parameters({"limit": "many"})

    assert http.calls == []


@pytest.mark.asyncio
async def test_empty_response_body_is_none(client, http) -> None:
    http.queue(DummyHTTPResponse(200, text=""))

    response = await client.reset_cache()

    assert response.data is None


@pytest.mark.asyncio
async def test_fractional_timeout_is_not_truncated(client, http) -> None:
    client.config(timeout=0.5)

    await client.get_jobs()

    assert client.core.current_config.timeout_ms == 0.5
    assert http.calls[0]["client_kwargs"]["timeout"] == pytest.approx(0.0005)
