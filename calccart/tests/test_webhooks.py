"""Tests for the compliance webhooks."""

import sqlite3
from unittest.mock import patch

import pytest

from calccart.calculators import list_configurations, upsert_configuration
from calccart.webhooks import compute_shopify_hmac, verify_shopify_hmac

WEBHOOK_PATHS = [
    "/webhooks/customers/data_request",
    "/webhooks/customers/redact",
    "/webhooks/shop/redact",
]


class TestVerifyShopifyHmac:
    """Signature verification."""

    def test_valid_signature(self):
        body = b'{"shop_id": 1}'
        assert verify_shopify_hmac(body, compute_shopify_hmac(body, "secret"), "secret") is True

    def test_wrong_secret(self):
        body = b'{"shop_id": 1}'
        assert verify_shopify_hmac(body, compute_shopify_hmac(body, "other"), "secret") is False

    def test_tampered_body(self):
        signature = compute_shopify_hmac(b'{"shop_id": 1}', "secret")
        assert verify_shopify_hmac(b'{"shop_id": 2}', signature, "secret") is False

    def test_missing_signature(self):
        assert verify_shopify_hmac(b"{}", None, "secret") is False

    def test_missing_secret_fails_closed(self):
        body = b"{}"
        assert verify_shopify_hmac(body, compute_shopify_hmac(body, ""), "") is False

    def test_non_ascii_signature_rejected(self):
        assert verify_shopify_hmac(b"{}", "\u00e9bad", "secret") is False


class TestAuthentication:
    """Every endpoint rejects unsigned deliveries."""

    @pytest.mark.parametrize("path", WEBHOOK_PATHS)
    def test_bad_signature_is_401(self, send_webhook, path):
        response = send_webhook(path, {"shop_domain": "s1.myshopify.com"}, signature="bogus")
        assert response.status_code == 401
        assert response.json == {"success": False}

    @pytest.mark.parametrize("path", WEBHOOK_PATHS)
    def test_valid_signature_is_200(self, send_webhook, path):
        response = send_webhook(path, {"shop_domain": "s1.myshopify.com"})
        assert response.status_code == 200
        assert response.json == {"success": True}

    @pytest.mark.parametrize("path", WEBHOOK_PATHS)
    def test_non_ascii_signature_is_401(self, send_webhook, path):
        response = send_webhook(path, {"shop_domain": "s1.myshopify.com"}, signature="\u00e9bad")
        assert response.status_code == 401
        assert response.json == {"success": False}

    def test_bad_signature_does_not_delete(self, send_webhook, temp_db):
        upsert_configuration(temp_db, "s1.myshopify.com", "p1")
        send_webhook("/webhooks/shop/redact", {}, signature="bogus")
        assert len(list_configurations(temp_db, "s1.myshopify.com")) == 1

    def test_get_not_allowed(self, client):
        assert client.get("/webhooks/shop/redact").status_code == 405


class TestCustomerWebhooks:
    """Customer topics never touch stored calculators."""

    @pytest.mark.parametrize(
        "path,topic",
        [
            ("/webhooks/customers/data_request", "customers/data_request"),
            ("/webhooks/customers/redact", "customers/redact"),
        ],
    )
    def test_no_deletion(self, send_webhook, temp_db, path, topic):
        upsert_configuration(temp_db, "s1.myshopify.com", "p1")
        response = send_webhook(path, {"customer": {"id": 7}}, topic=topic)
        assert response.status_code == 200
        assert len(list_configurations(temp_db, "s1.myshopify.com")) == 1

    def test_logs_topic_and_shop(self, send_webhook, caplog):
        with caplog.at_level("INFO", logger="calccart.webhooks"):
            send_webhook("/webhooks/customers/redact", {}, topic="customers/redact")
        assert "Received customers/redact webhook for s1.myshopify.com" in caplog.text


class TestShopRedact:
    """shop/redact removes the shop's calculators."""

    def test_removes_all_calculators_of_shop(self, send_webhook, temp_db):
        upsert_configuration(temp_db, "s1.myshopify.com", "p1", coverage="6")
        upsert_configuration(temp_db, "s1.myshopify.com", "p2", coverage="3")
        upsert_configuration(temp_db, "s2.myshopify.com", "p1", coverage="6")

        response = send_webhook("/webhooks/shop/redact", {"shop_domain": "s1.myshopify.com"})

        assert response.status_code == 200
        assert response.json == {"success": True}
        assert list_configurations(temp_db, "s1.myshopify.com") == []
        assert len(list_configurations(temp_db, "s2.myshopify.com")) == 1

    def test_succeeds_with_nothing_stored(self, send_webhook, temp_db):
        response = send_webhook("/webhooks/shop/redact", {"shop_domain": "s1.myshopify.com"})
        assert response.status_code == 200
        assert response.json == {"success": True}

    def test_repeated_delivery(self, send_webhook, temp_db):
        upsert_configuration(temp_db, "s1.myshopify.com", "p1")
        assert send_webhook("/webhooks/shop/redact", {}).status_code == 200
        assert send_webhook("/webhooks/shop/redact", {}).status_code == 200

    def test_shop_from_payload_without_header(self, send_webhook, temp_db):
        upsert_configuration(temp_db, "s3.myshopify.com", "p1")
        response = send_webhook("/webhooks/shop/redact", {"shop_domain": "s3.myshopify.com"}, shop=None)
        assert response.status_code == 200
        assert list_configurations(temp_db, "s3.myshopify.com") == []

    def test_store_failure_is_500(self, send_webhook):
        with patch(
            "calccart.webhooks.delete_all_configurations_for_shop",
            side_effect=sqlite3.OperationalError("disk I/O error"),
        ):
            response = send_webhook("/webhooks/shop/redact", {})
        assert response.status_code == 500
        assert response.json == {"success": False}


class TestNonObjectPayload:
    """Signed bodies that are not JSON objects still get acknowledged."""

    @pytest.mark.parametrize("body", [[1], "shop", 42, None])
    def test_shop_redact_without_shop_header(self, send_webhook, temp_db, body):
        upsert_configuration(temp_db, "s1.myshopify.com", "p1")
        response = send_webhook("/webhooks/shop/redact", body, shop=None)
        assert response.status_code == 200
        assert response.json == {"success": True}
        assert len(list_configurations(temp_db, "s1.myshopify.com")) == 1

    def test_customer_redact_with_list_body(self, send_webhook):
        response = send_webhook("/webhooks/customers/redact", [1], shop=None, topic="customers/redact")
        assert response.status_code == 200
