"""Tests for the Admin API client (HTTP mocked)."""

from unittest.mock import MagicMock

import pytest
import requests

from calccart.shopify_api import PRODUCTS_QUERY, ShopifyAdminClient, ShopifyAPIError


def _client(response=None, side_effect=None):
    session = MagicMock(spec=requests.Session)
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    return ShopifyAdminClient("s1.myshopify.com", "shpat_test", api_version="2025-01", session=session), session


def _response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} error")
    return resp


class TestFetchProducts:
    def test_returns_product_nodes(self, sample_products):
        client, session = _client(_response({"data": {"products": {"nodes": sample_products}}}))

        assert client.fetch_products() == sample_products

        args, kwargs = session.post.call_args
        assert args[0] == "https://s1.myshopify.com/admin/api/2025-01/graphql.json"
        assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test"
        assert kwargs["json"] == {"query": PRODUCTS_QUERY, "variables": {"first": 50}}

    def test_empty_catalog(self):
        client, _ = _client(_response({"data": {"products": {"nodes": []}}}))
        assert client.fetch_products() == []

    def test_graphql_errors_raise(self):
        client, _ = _client(_response({"errors": [{"message": "Access denied"}]}))
        with pytest.raises(ShopifyAPIError, match="Access denied"):
            client.fetch_products()

    def test_http_error_raises(self):
        client, _ = _client(_response({}, status_code=401))
        with pytest.raises(ShopifyAPIError):
            client.fetch_products()

    def test_connection_error_raises(self):
        client, _ = _client(side_effect=requests.exceptions.ConnectionError("down"))
        with pytest.raises(ShopifyAPIError, match="s1.myshopify.com"):
            client.fetch_products()

    def test_invalid_json_raises(self):
        resp = _response(None)
        resp.json.side_effect = ValueError("Expecting value")
        client, _ = _client(resp)
        with pytest.raises(ShopifyAPIError, match="invalid JSON"):
            client.fetch_products()
