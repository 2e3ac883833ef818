"""CalcCart: coverage calculators for Shopify products."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from calccart.calculators import (
    calculate_required_units,
    delete_all_configurations_for_shop,
    delete_configuration,
    list_configurations,
    upsert_configuration,
)
from calccart.db import CalculatorNotFoundError, init_db
from calccart.models import UNIT_OPTIONS, CalculatorConfig

__all__ = [
    # Version
    "__version__",
    # Models
    "CalculatorConfig",
    "UNIT_OPTIONS",
    # Store
    "CalculatorNotFoundError",
    "init_db",
    # Service
    "upsert_configuration",
    "delete_configuration",
    "list_configurations",
    "delete_all_configurations_for_shop",
    "calculate_required_units",
]
