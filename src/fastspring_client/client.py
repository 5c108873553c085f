"""FastSpring API facade: one async method per REST operation."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Mapping, Optional, Union

from .auth import Credential
from .config import Settings, get_settings
from .core import APICore
from .models import FetchResponse
from .openapi import OpenAPILoader


Metadata = Mapping[str, Any]
Body = Union[Mapping[str, Any], List[Any]]


class FastSpring:
    """
    Typed access to the FastSpring REST API.

    Every operation returns a ``FetchResponse`` on a 2xx status and raises
    ``FetchError`` otherwise. Configuration and credentials are shared by all
    calls made through the same client.
    """

    def __init__(self, core: Optional[APICore] = None) -> None:
        self.core = core or APICore()

    @classmethod
    def from_settings(cls, settings: Settings) -> "FastSpring":
        loader = OpenAPILoader()
        definition = loader.load_file(settings.openapi_path) if settings.openapi_path else None
        core = APICore(
            definition,
            user_agent=settings.user_agent,
            verify_ssl=settings.verify_ssl,
            loader=loader,
        )
        client = cls(core)
        client.config(timeout=settings.timeout_ms)
        if settings.server_url:
            client.server(settings.server_url)
        credentials = settings.credentials()
        if credentials:
            client.auth(*credentials)
        return client

    @classmethod
    async def from_definition_url(
        cls, url: str, loader: Optional[OpenAPILoader] = None
    ) -> "FastSpring":
        loader = loader or OpenAPILoader()
        definition = await loader.load_spec(url)
        if definition is None:
            raise RuntimeError(f"Unable to load OpenAPI definition from {url}")
        return cls(APICore(definition, loader=loader))

    def config(self, **options: Any) -> None:
        """Merge supported options into the client configuration.

        ``timeout`` overrides the default request timeout of 30 seconds and is
        given in milliseconds.
        """
        self.core.set_config(**options)

    def auth(self, *values: Credential) -> "FastSpring":
        """Store credentials for every subsequent request.

        Two values are used as a basic-auth username and password; a single
        value becomes a bearer token or API key, depending on the scheme the
        operation declares.
        """
        self.core.set_auth(*values)
        return self

    def server(self, url: str, variables: Optional[Mapping[str, Any]] = None) -> None:
        """Select the base URL, filling ``{name}`` placeholders from ``variables``."""
        self.core.set_server(url, variables)

    # Accounts

    async def get_one_account(self, metadata: Metadata) -> FetchResponse:
        """Get an account."""
        return await self.core.fetch("/accounts/{account_id}", "get", metadata)

    async def update_existing_account(self, body: Body, metadata: Metadata) -> FetchResponse:
        """Update account."""
        return await self.core.fetch("/accounts/{account_id}", "post", body, metadata)

    async def get_authenticated_account_management_url(self, metadata: Metadata) -> FetchResponse:
        """Get authenticated account management URL."""
        return await self.core.fetch("/accounts/{account_id}/authenticate", "get", metadata)

    async def create_an_account(self, body: Body) -> FetchResponse:
        """Create an account."""
        return await self.core.fetch("/accounts", "post", body)

    async def look_up_accounts_by_parameters(self, metadata: Optional[Metadata] = None) -> FetchResponse:
        """Get all accounts or search for accounts by parameter.

        If no parameters are sent, the operation returns a list of account IDs.
        """
        return await self.core.fetch("/accounts", "get", metadata)

    # Coupons

    async def create_a_new_coupon(self, body: Body) -> FetchResponse:
        return await self.core.fetch("/coupons", "post", body)

    async def add_coupon_codes_to_a_coupon(self, body: Body, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/coupons/{coupon_id}", "post", body, metadata)

    async def retrieve_coupon_details(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/coupons/{coupon_id}", "get", metadata)

    async def get_coupon_codes_assigned_to_a_coupon(
        self, body: Union[Body, Metadata], metadata: Optional[Metadata] = None
    ) -> FetchResponse:
        """Get coupon codes assigned to a coupon.

        Accepts either ``(metadata)`` or ``(body, metadata)``.
        """
        return await self.core.fetch("/coupons/{coupon_id}/codes", "get", body, metadata)

    async def delete_all_coupon_codes_from_a_coupon(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/coupons/{coupon_id}/codes", "delete", metadata)

    # Events

    async def get_processed_events(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/events/processed", "get", metadata)

    async def get_unprocessed_events(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/events/unprocessed", "get", metadata)

    async def update_a_single_event(self, body: Body, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/events/{event_id}", "post", body, metadata)

    # Orders

    async def get_orders_by_id(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/orders/{order_id}", "get", metadata)

    async def get_orders_by_product_path(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch(
            "/orders?products={product_path}&limit={limit}&page={page}", "get", metadata
        )

    async def get_orders_by_date_range(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch(
            "/orders?begin={begin_date}&end={end_date}&limit={limit}&page={page}", "get", metadata
        )

    async def get_orders_by_product_date_range(self, metadata: Metadata) -> FetchResponse:
        """Get orders by product path and date range."""
        return await self.core.fetch(
            "/orders?products={product_path}&begin={begin_date}&end={end_date}", "get", metadata
        )

    async def get_orders_by_end_date(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/orders?end={end_date}", "get", metadata)

    async def get_orders_by_return(self, metadata: Metadata) -> FetchResponse:
        """Get orders with returns only."""
        return await self.core.fetch(
            "/orders?begin={begin_date}&end={end_date}&returns={return}", "get", metadata
        )

    async def update_order_tags_and_attributes(self, body: Body) -> FetchResponse:
        return await self.core.fetch("/orders", "post", body)

    # Products

    async def get_products_by_id(self, metadata: Metadata) -> FetchResponse:
        """Get products by path."""
        return await self.core.fetch("/products/{product_path}", "get", metadata)

    async def get_list_of_all_product_ids(self) -> FetchResponse:
        return await self.core.fetch("/products", "get")

    async def create_one_or_more_new_products(self, body: Body) -> FetchResponse:
        """Create and update products. Responds with 200 or 201."""
        return await self.core.fetch("/products", "post", body)

    async def get_all_offers_for_product_by_offer_type(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/products/offers/{product_path}", "get", metadata)

    async def create_or_update_product_offers(self, body: Body, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/products/offers/{product_path}", "post", body, metadata)

    async def get_all_products_price(self) -> FetchResponse:
        return await self.core.fetch("/products/price", "get")

    async def get_specific_product_price(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/products/price/{id}", "get", metadata)

    async def get_all_products_price_with_country(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/products/price?country={country}", "get", metadata)

    async def get_all_products_price_with_country_and_currency(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch(
            "/products/price?country={country}&currency={currency}", "get", metadata
        )

    async def get_specific_product_price_country_currency(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch(
            "/products/price/{id}?country={country}&currency={currency}", "get", metadata
        )

    async def get_specific_product_price_country(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/products/price/{id}?country={country}", "get", metadata)

    async def delete_products(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/products/{id}", "delete", metadata)

    # Returns and sessions

    async def get_one_or_multiple_returns(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/returns/{id}", "get", metadata)

    async def post_one_more_orders_returns(self, body: Body) -> FetchResponse:
        """Create returns for one or more orders."""
        return await self.core.fetch("/returns", "post", body)

    async def create_a_session(self, body: Body) -> FetchResponse:
        """Create a session without overriding any default values."""
        return await self.core.fetch("/sessions", "post", body)

    # Subscriptions

    async def get_all_subscription_instances(self) -> FetchResponse:
        return await self.core.fetch("/subscriptions", "get")

    async def change_the_product_for_an_active_subscription(self, body: Body) -> FetchResponse:
        return await self.core.fetch("/subscriptions", "post", body)

    async def subscription_prorate_preview_estimate(self, body: Body) -> FetchResponse:
        """Preview a proposed prorated plan change."""
        return await self.core.fetch("/subscriptions/estimate", "post", body)

    async def get_one_or_more_subscription_instances(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/subscriptions/{subscription_id}", "get", metadata)

    async def cancel_subscription_instances(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/subscriptions/{subscription_id}", "delete", metadata)

    async def uncancel_a_subscription_prior_to_deactivation(
        self, body: Body, metadata: Metadata
    ) -> FetchResponse:
        """Resume a canceled subscription."""
        return await self.core.fetch("/subscriptions/{subscription_id}", "post", body, metadata)

    async def get_subscription_instance_entries(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/subscriptions/{subscription_id}/entries", "get", metadata)

    async def rebill_managed_subscription_instance(self, body: Body) -> FetchResponse:
        return await self.core.fetch("/subscriptions/charge", "post", body)

    async def pause_a_subscription(self, body: Body, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/subscriptions/{subscription_id}/pause", "post", body, metadata)

    async def resume_a_paused_subscription(self, metadata: Metadata) -> FetchResponse:
        """Remove a scheduled pause."""
        return await self.core.fetch("/subscriptions/{subscription_id}/resume", "post", metadata)

    async def convert_expired_trial_without_payment_method(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/subscriptions/{subscription_id}/convert", "post", metadata)

    async def get_subscription_plan_change_history(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/subscriptions/{subscription_id}/history", "get", metadata)

    # Quotes

    async def get_quote_by_id(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/quotes/{id}", "get", metadata)

    async def update_quote(self, body: Body, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/quotes/{id}", "put", body, metadata)

    async def delete_quote(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/quotes/{id}", "delete", metadata)

    async def cancel_quote(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/quotes/{id}/cancel", "post", metadata)

    async def get_all_quotes(self, metadata: Optional[Metadata] = None) -> FetchResponse:
        return await self.core.fetch("/quotes", "get", metadata)

    async def create_quote(self, body: Body) -> FetchResponse:
        return await self.core.fetch("/quotes", "post", body)

    # Webhooks

    async def rotate_webhook_key(self, body: Body) -> FetchResponse:
        """Update a webhook key secret."""
        return await self.core.fetch("/webhooks/keys", "post", body)

    # Reporting

    async def generate_subscription_report(self, body: Body) -> FetchResponse:
        return await self.core.fetch("/data/v1/subscription", "post", body)

    async def generate_revenue_report(self, body: Body) -> FetchResponse:
        return await self.core.fetch("/data/v1/revenue", "post", body)

    async def get_job_by_id(self, metadata: Metadata) -> FetchResponse:
        return await self.core.fetch("/data/v1/jobs/{id}", "get", metadata)

    async def get_jobs(self) -> FetchResponse:
        return await self.core.fetch("/data/v1/jobs", "get")

    async def reset_cache(self) -> FetchResponse:
        """Reset cache for data service end points."""
        return await self.core.fetch("/data/v1/util/cache", "get")

    async def download_report(self, metadata: Metadata) -> FetchResponse:
        """Download a report based on job ID."""
        return await self.core.fetch("/data/v1/downloads/{id}", "get", metadata)


@lru_cache(maxsize=1)
def get_client() -> FastSpring:
    return FastSpring.from_settings(get_settings())
