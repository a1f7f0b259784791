"""Tests for StripeClient with the Stripe library calls patched out."""

import json
from unittest.mock import patch

import pytest
import stripe

from ustripe import StripeClient, StripeConfig
from ustripe.exceptions import (
    StripeConfigError,
    StripeConnectionError,
    StripeCustomerError,
    StripePaymentError,
)
from ustripe.models import Address, LineItem, SubscriptionStatus

API_KEY = "sk_test_fake123456789"


def stripe_object(values):
    return stripe.StripeObject.construct_from(values, API_KEY)


def stripe_list(*items):
    return stripe_object({"object": "list", "data": list(items), "has_more": False})


CUSTOMER = {
    "id": "cus_1",
    "object": "customer",
    "email": "jane@example.com",
    "name": "Jane Doe",
    "phone": None,
    "description": None,
    "created": 1700000000,
    "metadata": {"hash1": "$1$pstripe$x", "status": "verified"},
    "preferred_locales": ["es"],
    "address": {
        "city": "Bilbao",
        "country": "ES",
        "line1": "Gran Via 1",
        "line2": None,
        "postal_code": "48001",
        "state": None,
    },
    "tax_ids": {
        "object": "list",
        "data": [{"id": "txi_1", "object": "tax_id", "type": "es_cif", "value": "B12345678"}],
    },
}


@pytest.fixture
def client(test_config):
    return StripeClient(test_config)


class TestStripeClientInit:
    def test_sets_api_key(self, test_config):
        StripeClient(test_config)
        assert stripe.api_key == "sk_test_fake123456789"

    def test_requires_api_key(self):
        with pytest.raises(StripeConfigError, match="STRIPE_TEST_SECRET_KEY"):
            StripeClient(StripeConfig())


class TestCustomers:
    """Tests for customer calls and conversions."""

    def test_find_customer_by_email(self, client):
        with patch.object(stripe.Customer, "list", return_value=stripe_list(CUSTOMER)) as mock_list:
            customer = client.find_customer_by_email("jane@example.com")

        mock_list.assert_called_once_with(
            email="jane@example.com", limit=1, expand=["data.subscriptions", "data.tax_ids"]
        )
        assert customer.id == "cus_1"
        assert customer.verified is True
        assert customer.language == "es"
        assert customer.address.city == "Bilbao"
        assert customer.address.postal_code == "48001"
        assert [(t.type, t.value) for t in customer.tax_ids] == [("es_cif", "B12345678")]
        assert customer.created_at is not None

    def test_typed_customer_with_expanded_subscriptions(self, client):
        """Typed resources are read by attribute and dumped to plain dicts."""
        subscription = {
            "id": "sub_1",
            "object": "subscription",
            "customer": "cus_1",
            "status": "active",
            "metadata": {},
            "items": {
                "object": "list",
                "data": [
                    {
                        "id": "si_1",
                        "object": "subscription_item",
                        "quantity": 1,
                        "price": {"id": "price_basic", "object": "price", "product": "prod_basic"},
                    }
                ],
            },
        }
        values = {
            **CUSTOMER,
            "subscriptions": {"object": "list", "data": [subscription]},
        }
        result = stripe.ListObject.construct_from(
            {"object": "list", "data": [stripe.Customer.construct_from(values, API_KEY)]},
            API_KEY,
        )

        with patch.object(stripe.Customer, "list", return_value=result):
            customer = client.find_customer_by_email("jane@example.com")

        assert customer.metadata == {"hash1": "$1$pstripe$x", "status": "verified"}
        assert [s.id for s in customer.subscriptions] == ["sub_1"]
        assert customer.subscriptions[0].items[0].product_id == "prod_basic"

        assert type(customer.raw) is dict
        assert type(customer.raw["metadata"]) is dict
        assert customer.raw["subscriptions"]["data"][0]["id"] == "sub_1"
        assert json.loads(json.dumps(customer.raw))["email"] == "jane@example.com"

    def test_minimal_typed_customer(self, client):
        """Fields Stripe leaves out come back as None."""
        minimal = stripe.Customer.construct_from(
            {"id": "cus_1", "object": "customer", "email": "a@b.c", "metadata": {}}, API_KEY
        )
        result = stripe.ListObject.construct_from({"object": "list", "data": [minimal]}, API_KEY)

        with patch.object(stripe.Customer, "list", return_value=result):
            customer = client.find_customer_by_email("a@b.c")

        assert customer.email == "a@b.c"
        assert customer.name is None
        assert customer.address is None
        assert customer.tax_ids == []
        assert customer.subscriptions == []
        assert customer.created_at is None

    def test_find_customer_missing(self, client):
        with patch.object(stripe.Customer, "list", return_value=stripe_list()):
            assert client.find_customer_by_email("nobody@example.com") is None

    def test_get_customer_id(self, client):
        with patch.object(stripe.Customer, "list", return_value=stripe_list(CUSTOMER)) as mock_list:
            assert client.get_customer_id("jane@example.com") == "cus_1"

        mock_list.assert_called_once_with(email="jane@example.com", limit=1)

    def test_list_customers_is_lazy(self, client):
        with patch.object(stripe.Customer, "list", return_value=stripe_list(CUSTOMER)) as mock_list:
            listing = client.list_customers()
            assert mock_list.call_count == 0

            assert [c.email for c in listing] == ["jane@example.com"]
            mock_list.assert_called_once_with(limit=100)

    def test_create_customer(self, client):
        with patch.object(stripe.Customer, "create", return_value=stripe_object(CUSTOMER)) as mock_create:
            client.create_customer(
                "jane@example.com", metadata={"hash1": "h"}, preferred_locales=["es"]
            )

        mock_create.assert_called_once_with(
            email="jane@example.com", metadata={"hash1": "h"}, preferred_locales=["es"]
        )

    def test_create_customer_without_locale(self, client):
        with patch.object(stripe.Customer, "create", return_value=stripe_object(CUSTOMER)) as mock_create:
            client.create_customer("jane@example.com", metadata={"hash1": "h"})

        mock_create.assert_called_once_with(email="jane@example.com", metadata={"hash1": "h"})

    def test_update_customer_sends_only_given_fields(self, client):
        with patch.object(stripe.Customer, "modify", return_value=stripe_object(CUSTOMER)) as mock_modify:
            client.update_customer(
                "cus_1",
                metadata={"status": "verified"},
                address=Address(city="Bilbao", postal_code="48001"),
                name="Jane Doe",
            )

        mock_modify.assert_called_once_with(
            "cus_1",
            metadata={"status": "verified"},
            address={"city": "Bilbao", "postal_code": "48001"},
            name="Jane Doe",
        )

    def test_delete_customer(self, client):
        deleted = stripe_object({"id": "cus_1", "object": "customer", "deleted": True})
        with patch.object(stripe.Customer, "delete", return_value=deleted):
            assert client.delete_customer("cus_1") is True

    def test_stripe_error_is_wrapped(self, client):
        error = stripe.InvalidRequestError("No such customer: 'cus_x'", param="id")
        with patch.object(stripe.Customer, "modify", side_effect=error):
            with pytest.raises(StripeCustomerError, match="Failed to update Stripe customer") as excinfo:
                client.update_customer("cus_x", name="x")

        assert excinfo.value.original_error is error
        assert excinfo.value.details == {"customer_id": "cus_x"}

    def test_connection_error(self, client):
        with patch.object(stripe.Customer, "list", side_effect=stripe.APIConnectionError("network down")):
            with pytest.raises(StripeConnectionError):
                client.get_customer_id("jane@example.com")


class TestCatalog:
    def test_list_products_expands_default_price(self, client):
        product = {
            "id": "prod_basic",
            "object": "product",
            "name": "Basic",
            "active": True,
            "default_price": {
                "id": "price_basic",
                "object": "price",
                "product": "prod_basic",
                "unit_amount": 499,
                "currency": "eur",
                "active": True,
                "recurring": {"interval": "month", "interval_count": 1},
            },
        }
        with patch.object(stripe.Product, "list", return_value=stripe_list(product)) as mock_list:
            products = list(client.list_products())

        mock_list.assert_called_once_with(limit=100, expand=["data.default_price"])
        assert products[0].default_price_id == "price_basic"
        assert products[0].default_price.unit_amount == 499
        assert products[0].default_price.recurring_interval == "month"

    def test_get_product_with_unexpanded_price(self, client):
        product = {"id": "prod_basic", "object": "product", "name": "Basic", "default_price": "price_basic"}
        with patch.object(stripe.Product, "retrieve", return_value=stripe_object(product)):
            result = client.get_product("prod_basic")

        assert result.default_price_id == "price_basic"
        assert result.default_price is None

    def test_get_product_not_found(self, client):
        error = stripe.InvalidRequestError("No such product: 'prod_x'", param="id")
        with patch.object(stripe.Product, "retrieve", side_effect=error):
            assert client.get_product("prod_x") is None

    def test_list_tax_rates(self, client):
        tax_rate = {
            "id": "txr_1",
            "object": "tax_rate",
            "display_name": "IVA",
            "percentage": 21.0,
            "jurisdiction": "ES",
            "active": True,
            "inclusive": False,
        }
        with patch.object(stripe.TaxRate, "list", return_value=stripe_list(tax_rate)):
            rates = list(client.list_tax_rates())

        assert rates[0].display_name == "IVA"
        assert rates[0].percentage == 21.0


class TestSubscriptions:
    def test_list_active_subscriptions(self, client):
        subscription = {
            "id": "sub_1",
            "object": "subscription",
            "customer": "cus_1",
            "status": "active",
            "metadata": {},
            "items": {
                "object": "list",
                "data": [
                    {
                        "id": "si_1",
                        "object": "subscription_item",
                        "quantity": 2,
                        "price": {"id": "price_basic", "object": "price", "product": "prod_basic"},
                    }
                ],
            },
        }
        with patch.object(stripe.Subscription, "list", return_value=stripe_list(subscription)) as mock_list:
            subscriptions = client.list_active_subscriptions("cus_1")

        mock_list.assert_called_once_with(customer="cus_1", status="active", limit=100)
        assert subscriptions[0].status == SubscriptionStatus.ACTIVE
        item = subscriptions[0].items[0]
        assert (item.price_id, item.product_id, item.quantity) == ("price_basic", "prod_basic", 2)


class TestCheckout:
    def test_create_checkout_session(self, client):
        session = {
            "id": "cs_1",
            "object": "checkout.session",
            "url": "https://checkout.stripe.com/c/pay/cs_1",
            "customer": "cus_1",
            "mode": "subscription",
            "status": "open",
            "payment_status": "unpaid",
            "client_reference_id": "order-42",
        }
        items = [LineItem(price_id="price_basic", quantity=1, tax_rates=["txr_1"])]

        with patch.object(stripe.checkout.Session, "create", return_value=stripe_object(session)) as mock_create:
            result = client.create_checkout_session(
                "cus_1", items, "https://ok", "https://ko", client_reference_id="order-42"
            )

        mock_create.assert_called_once_with(
            mode="subscription",
            customer="cus_1",
            line_items=[{"price": "price_basic", "quantity": 1, "tax_rates": ["txr_1"]}],
            success_url="https://ok",
            cancel_url="https://ko",
            client_reference_id="order-42",
        )
        assert result.url == "https://checkout.stripe.com/c/pay/cs_1"
        assert result.client_reference_id == "order-42"

    def test_checkout_error(self, client):
        error = stripe.InvalidRequestError("No such price", param="line_items")
        with patch.object(stripe.checkout.Session, "create", side_effect=error):
            with pytest.raises(StripePaymentError, match="Failed to create checkout session"):
                client.create_checkout_session("cus_1", [], "https://ok", "https://ko")
