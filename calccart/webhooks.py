"""Mandatory Shopify compliance webhooks.

Each handler:
1. Reads the raw body (needed for HMAC verification)
2. Verifies the X-Shopify-Hmac-Sha256 signature against the app's API secret
3. Acts on the topic (only shop/redact touches the database)
4. Returns 200 {"success": true}

Verification fails closed: with no secret configured every delivery gets 401.
"""

import base64
import hashlib
import hmac
import logging
import sqlite3
from typing import Optional, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from calccart.calculators import delete_all_configurations_for_shop
from calccart.logging_config import log_webhook_event

__all__ = ["webhooks", "verify_shopify_hmac", "compute_shopify_hmac"]

logger = logging.getLogger(__name__)

HMAC_HEADER = "X-Shopify-Hmac-Sha256"
SHOP_HEADER = "X-Shopify-Shop-Domain"
TOPIC_HEADER = "X-Shopify-Topic"

webhooks = Blueprint("webhooks", __name__, url_prefix="/webhooks")


def compute_shopify_hmac(body: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 of ``body``, as Shopify puts it in the signature header."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_shopify_hmac(body: bytes, signature: Optional[str], secret: str) -> bool:
    """Constant-time check of a webhook signature."""
    if not secret:
        logger.warning("SHOPIFY_API_SECRET not set - rejecting webhook")
        return False
    if not signature:
        return False
    # bytes comparison; str compare_digest rejects non-ASCII header values
    expected = compute_shopify_hmac(body, secret).encode("utf-8")
    return hmac.compare_digest(expected, signature.encode("utf-8", "surrogateescape"))


def _authenticate_webhook() -> Optional[Tuple[str, str]]:
    """Return (shop, topic) of a verified delivery, or None."""
    body = request.get_data(cache=True)
    if not verify_shopify_hmac(body, request.headers.get(HMAC_HEADER), current_app.config["SHOPIFY_API_SECRET"]):
        log_webhook_event(
            "webhook_rejected",
            {"message": f"Invalid webhook signature on {request.path}", "path": request.path},
            level=logging.WARNING,
        )
        return None

    shop = request.headers.get(SHOP_HEADER)
    if not shop:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        shop = payload.get("shop_domain") or ""
    topic = request.headers.get(TOPIC_HEADER, "")

    log_webhook_event(
        "webhook_received",
        {"message": f"Received {topic} webhook for {shop}", "topic": topic, "shop": shop},
    )
    return shop, topic


def _unauthorized() -> Tuple[Response, int]:
    return jsonify({"success": False}), 401


def _acknowledged() -> Tuple[Response, int]:
    return jsonify({"success": True}), 200


@webhooks.route("/customers/data_request", methods=["POST"])
def customers_data_request():
    """No customer data is stored, so there is nothing to report."""
    if _authenticate_webhook() is None:
        return _unauthorized()
    return _acknowledged()


@webhooks.route("/customers/redact", methods=["POST"])
def customers_redact():
    """No customer data is stored, so there is nothing to delete."""
    if _authenticate_webhook() is None:
        return _unauthorized()
    return _acknowledged()


@webhooks.route("/shop/redact", methods=["POST"])
def shop_redact():
    """Delete every calculator of the shop. Succeeds when there were none."""
    delivery = _authenticate_webhook()
    if delivery is None:
        return _unauthorized()
    shop, topic = delivery

    try:
        deleted = delete_all_configurations_for_shop(current_app.config["DB_PATH"], shop)
    except sqlite3.Error:
        logger.exception("Failed to redact calculators for %s", shop)
        return jsonify({"success": False}), 500

    log_webhook_event(
        "shop_redacted",
        {"message": f"Deleted {deleted} calculators for {shop}", "shop": shop, "topic": topic, "deleted": deleted},
    )
    return _acknowledged()
