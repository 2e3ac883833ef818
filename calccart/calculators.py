"""Calculator service: lenient input handling on top of the store.

Form input from the admin page is never rejected for malformed numbers;
unparsable coverage becomes 0 and an unparsable waste factor becomes 1.1.
"""

import logging
import math
import re
import sqlite3
from typing import Any, Dict, List, Mapping, Optional, Tuple

from calccart.db import (
    CalculatorNotFoundError,
    delete_calculator,
    delete_calculators_for_shop,
    list_calculators,
    upsert_calculator,
)
from calccart.models import DEFAULT_COVERAGE, DEFAULT_UNIT_TYPE, DEFAULT_WASTE_FACTOR, CalculatorConfig

__all__ = [
    "parse_float",
    "upsert_configuration",
    "delete_configuration",
    "list_configurations",
    "delete_all_configurations_for_shop",
    "calculate_required_units",
    "handle_action",
    "SAVED_MESSAGE",
    "DELETED_MESSAGE",
]

logger = logging.getLogger(__name__)

SAVED_MESSAGE = "Calculator saved!"
DELETED_MESSAGE = "Calculator deleted!"

# Leading decimal number, e.g. "6", "-1.5", ".5", "6 sqm", "1e3"
_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_float(value: Any, default: float) -> float:
    """Parse a form value into a float, falling back to ``default``.

    Only the leading number is read ("6 sqm" -> 6.0). Missing, unparsable,
    non-finite and zero values all yield ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_FLOAT.match(str(value))
        if not match:
            return default
        number = float(match.group())

    if not math.isfinite(number) or number == 0:
        return default
    return number


def upsert_configuration(
    db_path: str,
    shop: str,
    product_id: str,
    product_title: Optional[str] = None,
    unit_type: Optional[str] = None,
    unit_label: Optional[str] = None,
    coverage: Any = None,
    coverage_unit: Optional[str] = None,
    waste_factor: Any = None,
) -> CalculatorConfig:
    """Create or update the calculator of a product. Always marks it active."""
    return upsert_calculator(
        db_path,
        shop=shop,
        product_id=product_id,
        product_title=product_title,
        unit_type=unit_type or DEFAULT_UNIT_TYPE,
        unit_label=unit_label,
        coverage=parse_float(coverage, DEFAULT_COVERAGE),
        coverage_unit=coverage_unit,
        waste_factor=parse_float(waste_factor, DEFAULT_WASTE_FACTOR),
        is_active=True,
    )


def delete_configuration(db_path: str, calculator_id: str, shop: Optional[str] = None) -> None:
    """Delete a calculator by id; raises CalculatorNotFoundError if missing.

    With ``shop`` set, a calculator of another shop counts as missing.
    """
    delete_calculator(db_path, calculator_id, shop=shop)


def list_configurations(db_path: str, shop: str) -> List[CalculatorConfig]:
    return list_calculators(db_path, shop)


def delete_all_configurations_for_shop(db_path: str, shop: str) -> int:
    """Remove every calculator of a shop. Returns 0 when there were none."""
    return delete_calculators_for_shop(db_path, shop)


def calculate_required_units(config: CalculatorConfig, amount: float) -> Optional[int]:
    """Number of product units needed to cover ``amount``, waste included.

    Example: 20 sqm with 6 sqm/Liter coverage and 10% waste -> ceil(3.67) = 4.

    Returns:
        Whole units, 0 for a non-positive amount, or None if the calculator
        has no usable coverage.
    """
    if config.coverage <= 0:
        return None
    if amount <= 0:
        return 0
    required = amount * config.waste_factor / config.coverage
    # Guard against float noise such as 3.0000000000000004
    return int(math.ceil(round(required, 9)))


def handle_action(db_path: str, shop: str, data: Mapping[str, Any]) -> Tuple[Dict[str, Any], int]:
    """Apply one admin mutation and build the endpoint response.

    Args:
        db_path: Store location
        shop: Authenticated shop domain
        data: Submitted fields with an ``action`` of 'create' or 'delete'

    Returns:
        (response body, HTTP status) where the body is ``{"success": bool, "message"?: str}``.
    """
    action = data.get("action")

    try:
        if action == "create":
            product_id = data.get("productId")
            if not product_id:
                return {"success": False, "message": "Missing productId"}, 400
            config = upsert_configuration(
                db_path,
                shop=shop,
                product_id=product_id,
                product_title=data.get("productTitle"),
                unit_type=data.get("unitType"),
                unit_label=data.get("unitLabel"),
                coverage=data.get("coverage"),
                coverage_unit=data.get("coverageUnit"),
                waste_factor=data.get("wasteFactor"),
            )
            logger.info("Saved calculator %s for %s product %s", config.id, shop, product_id)
            return {"success": True, "message": SAVED_MESSAGE}, 200

        if action == "delete":
            calculator_id = data.get("id")
            if not calculator_id:
                return {"success": False, "message": "Missing id"}, 400
            delete_configuration(db_path, calculator_id, shop=shop)
            logger.info("Deleted calculator %s for %s", calculator_id, shop)
            return {"success": True, "message": DELETED_MESSAGE}, 200

    except CalculatorNotFoundError as e:
        logger.warning("Delete for %s failed: %s", shop, e)
        return {"success": False, "message": "Calculator not found"}, 404
    except sqlite3.Error:
        logger.exception("Calculator %s failed for %s", action, shop)
        return {"success": False}, 500

    return {"success": False}, 400
