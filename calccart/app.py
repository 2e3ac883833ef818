"""Flask app for the CalcCart merchant admin.

Shop owners attach a coverage calculator (unit type, coverage, waste factor)
to their products. The admin page lists the shop's products next to the
calculators already configured; the compliance webhooks live in a separate
blueprint.
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

from flask import (
    Flask,
    Response,
    current_app,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from calccart import config
from calccart.admin_state import AdminViewState
from calccart.calculators import calculate_required_units, handle_action, list_configurations, parse_float
from calccart.db import find_calculator, init_db
from calccart.logging_config import setup_logging
from calccart.models import UNIT_OPTIONS, WASTE_FACTOR_OPTIONS, format_number
from calccart.shopify_api import ShopifyAdminClient, ShopifyAPIError
from calccart.webhooks import webhooks

__all__ = ["create_app", "is_valid_shop_domain"]

logger = logging.getLogger(__name__)

_SHOP_DOMAIN_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]*\.myshopify\.com$")


def is_valid_shop_domain(shop: Optional[str]) -> bool:
    """Check for a ``<name>.myshopify.com`` domain."""
    return bool(shop) and bool(_SHOP_DOMAIN_PATTERN.match(shop))


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """Build the Flask app.

    Args:
        overrides: Config values replacing the defaults from calccart.config
            (e.g. DB_PATH or SHOPIFY_API_SECRET in tests).
    """
    app = Flask(__name__)
    app.config.update(
        DB_PATH=config.DB_PATH,
        SHOPIFY_API_SECRET=config.SHOPIFY_API_SECRET,
        SHOPIFY_ADMIN_ACCESS_TOKEN=config.SHOPIFY_ADMIN_ACCESS_TOKEN,
        SHOPIFY_API_VERSION=config.SHOPIFY_API_VERSION,
        PRODUCTS_PAGE_SIZE=config.PRODUCTS_PAGE_SIZE,
        LOG_TO_FILE=config.LOG_TO_FILE,
        SECRET_KEY=config.SECRET_KEY,
    )
    if overrides:
        app.config.update(overrides)

    setup_logging(log_to_file=app.config["LOG_TO_FILE"])
    init_db(app.config["DB_PATH"])

    app.jinja_env.filters["number"] = format_number

    app.register_blueprint(webhooks)
    _register_routes(app)
    return app


# ---------- HELPERS ----------


def _current_shop() -> Optional[str]:
    """Shop of the request: ``shop`` query parameter first, then the session."""
    shop = request.args.get("shop")
    if is_valid_shop_domain(shop):
        session["shop"] = shop
        return shop
    return session.get("shop")


def _admin_client(shop: str) -> ShopifyAdminClient:
    return ShopifyAdminClient(
        shop_domain=shop,
        access_token=current_app.config["SHOPIFY_ADMIN_ACCESS_TOKEN"],
        api_version=current_app.config["SHOPIFY_API_VERSION"],
    )


def _submitted_data() -> Dict[str, Any]:
    """Mutation fields from a form post or a JSON body."""
    if request.form:
        return request.form.to_dict()
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _build_view_state(shop: str) -> Dict[str, Any]:
    """Load products and calculators, then apply the transitions in the query."""
    products = []
    error = None
    try:
        products = _admin_client(shop).fetch_products(current_app.config["PRODUCTS_PAGE_SIZE"])
    except ShopifyAPIError as e:
        logger.error("Could not load products for %s: %s", shop, e)
        error = "Products could not be loaded from Shopify. Try refreshing."

    state = AdminViewState(
        products=products,
        calculators=list_configurations(current_app.config["DB_PATH"], shop),
    )

    product_id = request.args.get("product_id")
    if product_id:
        title = request.args.get("product_title")
        if not title:
            known = next((p for p in products if p.get("id") == product_id), None)
            existing = state.calculator_for(product_id)
            if known is not None:
                title = known.get("title")
            elif existing is not None:
                title = existing.product_title
        state.select_product({"id": product_id, "title": title or ""})

        unit_type = request.args.get("unit_type")
        if unit_type:
            try:
                state.change_unit_type(unit_type)
            except ValueError:
                logger.warning("Ignoring unknown unit type %r", unit_type)
        state.update_form(
            coverage=request.args.get("coverage"),
            waste_factor=request.args.get("waste_factor"),
        )

    return {"state": state, "error": error}


# ---------- FLASK ROUTES ----------


def _register_routes(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def index():
        """Landing page; a shop parameter goes straight to the admin."""
        if request.args.get("shop"):
            return redirect(f"{url_for('admin')}?{urlencode(request.args)}")
        return render_template("index.html", error=None)

    @app.route("/auth/login", methods=["POST"])
    def login():
        shop = (request.form.get("shop") or "").strip().lower()
        if not is_valid_shop_domain(shop):
            return render_template("index.html", error="Enter a domain like my-shop-domain.myshopify.com"), 400
        session["shop"] = shop
        return redirect(url_for("admin"))

    @app.route("/app", methods=["GET"])
    def admin():
        """Render the admin page for the current shop."""
        shop = _current_shop()
        if not shop:
            return redirect(url_for("index"))

        view = _build_view_state(shop)
        return render_template(
            "app.html",
            shop=shop,
            state=view["state"],
            error=view["error"],
            unit_options=UNIT_OPTIONS,
            waste_options=WASTE_FACTOR_OPTIONS,
        )

    @app.route("/app", methods=["POST"])
    def admin_action() -> Response:
        """Mutation endpoint: action=create|delete, returns {success, message?}."""
        shop = _current_shop()
        if not shop:
            return jsonify({"success": False, "message": "Unauthorized"}), 401

        body, status = handle_action(current_app.config["DB_PATH"], shop, _submitted_data())
        return jsonify(body), status

    @app.route("/api/calculator", methods=["GET"])
    def storefront_calculator() -> Response:
        """Active calculator of one product for the storefront widget."""
        shop = request.args.get("shop")
        product_id = request.args.get("product_id")
        if not is_valid_shop_domain(shop) or not product_id:
            return jsonify({"error": "shop and product_id are required"}), 400

        calc = find_calculator(current_app.config["DB_PATH"], shop, product_id)
        if calc is None or not calc.is_active:
            return jsonify({"error": "No calculator for this product"}), 404

        body = {
            "productId": calc.product_id,
            "unitType": calc.unit_type,
            "unitLabel": calc.unit_label,
            "coverage": calc.coverage,
            "coverageUnit": calc.coverage_unit,
            "wasteFactor": calc.waste_factor,
        }
        amount = request.args.get("amount")
        if amount is not None:
            body["amount"] = parse_float(amount, 0.0)
            body["requiredUnits"] = calculate_required_units(calc, body["amount"])
        return jsonify(body)

    @app.route("/health", methods=["GET"])
    def health() -> Response:
        return jsonify({"status": "ok"})


if __name__ == "__main__":
    create_app().run(host=config.FLASK_HOST, port=config.FLASK_PORT, debug=config.FLASK_DEBUG)
