"""Shared test fixtures for the CalcCart test suite."""

import json
from typing import Any, Optional

import pytest

from calccart.app import create_app
from calccart.db import init_db
from calccart.webhooks import compute_shopify_hmac

WEBHOOK_SECRET = "test-webhook-secret"
SHOP = "s1.myshopify.com"


@pytest.fixture
def temp_db(tmp_path):
    """Create an initialized temporary database and return its path."""
    db_path = str(tmp_path / "calccart_test.db")
    init_db(db_path)
    return db_path


@pytest.fixture
def app(temp_db):
    """Flask app bound to the temporary database."""
    flask_app = create_app(
        {
            "TESTING": True,
            "DB_PATH": temp_db,
            "SHOPIFY_API_SECRET": WEBHOOK_SECRET,
            "SHOPIFY_ADMIN_ACCESS_TOKEN": "shpat_test",
            "LOG_TO_FILE": False,
            "SECRET_KEY": "test",
        }
    )
    return flask_app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def sample_products():
    """Products as returned by the Admin API products query."""
    return [
        {
            "id": "gid://shopify/Product/1",
            "title": "Wall Paint White",
            "featuredImage": {"url": "https://cdn.example.com/paint.png"},
        },
        {
            "id": "gid://shopify/Product/2",
            "title": "Oak Skirting Board",
            "featuredImage": None,
        },
    ]


@pytest.fixture
def send_webhook(client):
    """POST a signed compliance webhook and return the response."""

    def _send(
        path: str,
        payload: Any,
        shop: Optional[str] = SHOP,
        topic: str = "shop/redact",
        secret: str = WEBHOOK_SECRET,
        signature: Optional[str] = None,
    ):
        body = json.dumps(payload).encode("utf-8")
        headers = {
            "X-Shopify-Hmac-Sha256": signature if signature is not None else compute_shopify_hmac(body, secret),
            "X-Shopify-Topic": topic,
        }
        if shop:
            headers["X-Shopify-Shop-Domain"] = shop
        return client.post(path, data=body, headers=headers, content_type="application/json")

    return _send
