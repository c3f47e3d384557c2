"""
Tests for the Shopify Storefront catalog client.

The HTTP session is mocked; no network access.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from catalog_client import ShopifyCatalogClient, parse_product
from errors import UpstreamFetchFailure


def _node(handle="lpj-mountainplaid", title="Mountain Plaid", amount="349.0"):
    return {
        "id": f"gid://shopify/Product/{handle}",
        "title": title,
        "handle": handle,
        "description": "Handgewebt aus Schafwolle",
        "descriptionHtml": "<p>Handgewebt aus Schafwolle</p>",
        "productType": "Decken",
        "tags": ["Schafwolle"],
        "priceRange": {
            "minVariantPrice": {"amount": amount, "currencyCode": "EUR"},
            "maxVariantPrice": {"amount": amount, "currencyCode": "EUR"},
        },
        "variants": {"edges": [
            {"node": {
                "id": "gid://shopify/ProductVariant/1",
                "title": "grau",
                "price": {"amount": amount, "currencyCode": "EUR"},
                "availableForSale": True,
            }},
            {"node": {
                "id": "gid://shopify/ProductVariant/2",
                "title": "beige",
                "price": {"amount": amount, "currencyCode": "EUR"},
                "availableForSale": False,
            }},
        ]},
        "images": {"edges": [{"node": {"url": "https://cdn.shopify.com/mountain.jpg"}}]},
    }


def _response(payload=None, status_code=200, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = "" if payload is None else str(payload)
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    return response


def _client(session):
    return ShopifyCatalogClient(
        store_domain="lpj-studios.myshopify.com",
        access_token="shpat_test_token_123",
        api_version="2024-01",
        page_size=50,
        variants_per_product=5,
        timeout=30,
        session=session,
    )


class TestFetchAll:
    def test_normalizes_products(self):
        session = MagicMock()
        session.post.return_value = _response({"data": {"products": {"edges": [
            {"node": _node()},
            {"node": _node("lpj-cloud-plaid", "Cloud Plaid", "489.00")},
        ]}}})

        products = _client(session).fetch_all()

        assert [p.handle for p in products] == ["lpj-mountainplaid", "lpj-cloud-plaid"]
        mountain = products[0]
        assert mountain.price_min.amount == Decimal("349.0")
        assert mountain.price_min.currency_code == "EUR"
        assert [v.title for v in mountain.variants] == ["grau", "beige"]
        assert [v.title for v in mountain.sold_out_variants] == ["beige"]
        assert mountain.image_urls == ("https://cdn.shopify.com/mountain.jpg",)
        assert mountain.tags == ("Schafwolle",)

    def test_request_shape(self):
        session = MagicMock()
        session.post.return_value = _response({"data": {"products": {"edges": []}}})

        _client(session).fetch_all()

        args, kwargs = session.post.call_args
        assert args[0] == "https://lpj-studios.myshopify.com/api/2024-01/graphql.json"
        assert kwargs["headers"]["X-Shopify-Storefront-Access-Token"] == "shpat_test_token_123"
        assert kwargs["json"]["variables"] == {"first": 50, "variants": 5}
        assert "products(first: $first)" in kwargs["json"]["query"]
        assert kwargs["timeout"] == 30

    def test_empty_catalog_is_valid(self):
        session = MagicMock()
        session.post.return_value = _response({"data": {"products": {"edges": []}}})
        assert _client(session).fetch_all() == ()


class TestFetchFailures:
    """Every failure surfaces as UpstreamFetchFailure."""

    def test_missing_credentials(self):
        session = MagicMock()
        client = ShopifyCatalogClient(store_domain="", access_token="", session=session)
        with pytest.raises(UpstreamFetchFailure):
            client.fetch_all()
        session.post.assert_not_called()

    def test_http_error(self):
        session = MagicMock()
        session.post.return_value = _response({"errors": "Unauthorized"}, status_code=401)
        with pytest.raises(UpstreamFetchFailure, match="401"):
            _client(session).fetch_all()

    def test_connection_error(self):
        session = MagicMock()
        session.post.side_effect = requests.exceptions.ConnectionError("connection refused")
        with pytest.raises(UpstreamFetchFailure):
            _client(session).fetch_all()

    def test_timeout(self):
        session = MagicMock()
        session.post.side_effect = requests.exceptions.Timeout("read timed out")
        with pytest.raises(UpstreamFetchFailure):
            _client(session).fetch_all()

    def test_invalid_json(self):
        session = MagicMock()
        session.post.return_value = _response(json_error=ValueError("no json"))
        with pytest.raises(UpstreamFetchFailure, match="invalid JSON"):
            _client(session).fetch_all()

    def test_graphql_errors(self):
        session = MagicMock()
        session.post.return_value = _response({"errors": [{"message": "Throttled"}]})
        with pytest.raises(UpstreamFetchFailure, match="Throttled"):
            _client(session).fetch_all()

    def test_missing_products(self):
        session = MagicMock()
        session.post.return_value = _response({"data": {}})
        with pytest.raises(UpstreamFetchFailure):
            _client(session).fetch_all()

    def test_non_numeric_price_is_malformed(self):
        session = MagicMock()
        session.post.return_value = _response({"data": {"products": {"edges": [
            {"node": _node(amount="abc")},
        ]}}})
        with pytest.raises(UpstreamFetchFailure, match="Malformed"):
            _client(session).fetch_all()

    def test_negative_price_is_malformed(self):
        session = MagicMock()
        session.post.return_value = _response({"data": {"products": {"edges": [
            {"node": _node(amount="-1.00")},
        ]}}})
        with pytest.raises(UpstreamFetchFailure, match="Malformed"):
            _client(session).fetch_all()


class TestParseProduct:
    def test_non_numeric_price_is_rejected(self):
        node = _node()
        node["priceRange"]["minVariantPrice"]["amount"] = "abc"
        with pytest.raises(ValueError):
            parse_product(node)

    def test_minimal_node(self):
        product = parse_product({"id": "gid://shopify/Product/1", "title": "Yoga Plaid", "handle": "lpj-yoga-plaid"})
        assert product.variants == ()
        assert product.image_urls == ()
        assert product.product_type is None
        assert product.price_min.amount == Decimal("0")
