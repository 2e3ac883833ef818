"""Data models for calculator configurations."""

import sqlite3
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

__all__ = [
    "CalculatorConfig",
    "UnitOption",
    "UNIT_OPTIONS",
    "WASTE_FACTOR_OPTIONS",
    "DEFAULT_UNIT_TYPE",
    "DEFAULT_COVERAGE",
    "DEFAULT_WASTE_FACTOR",
    "get_unit_option",
    "format_number",
]


@dataclass(frozen=True)
class UnitOption:
    """One entry of the unit lookup table shown in the calculator form."""

    value: str
    label: str
    unit: str
    coverage_unit: str


UNIT_OPTIONS: List[UnitOption] = [
    UnitOption("area_metric", "Area (sqm)", "sqm", "sqm/Liter"),
    UnitOption("area_imperial", "Area (sq ft)", "sq ft", "sq ft/Gallon"),
    UnitOption("length_metric", "Length (m)", "m", "m/Roll"),
    UnitOption("length_imperial", "Length (ft)", "ft", "ft/Roll"),
    UnitOption("volume_metric", "Volume (L)", "L", "L/kg"),
    UnitOption("volume_imperial", "Volume (Gallon)", "gal", "gal/lb"),
    UnitOption("pieces", "Pieces", "pcs", "pcs/Pack"),
]

_UNIT_OPTIONS_BY_VALUE: Dict[str, UnitOption] = {opt.value: opt for opt in UNIT_OPTIONS}

# (form value, display label)
WASTE_FACTOR_OPTIONS: List[Tuple[str, str]] = [
    ("1.0", "0% (No waste)"),
    ("1.05", "5%"),
    ("1.1", "10% (Recommended)"),
    ("1.15", "15%"),
    ("1.2", "20%"),
]

DEFAULT_UNIT_TYPE = "area_metric"
DEFAULT_COVERAGE = 0.0
DEFAULT_WASTE_FACTOR = 1.1


def get_unit_option(unit_type: str) -> Optional[UnitOption]:
    """Look up a unit option by its ``unit_type`` value."""
    return _UNIT_OPTIONS_BY_VALUE.get(unit_type)


def format_number(value: float) -> str:
    """Render a stored float without losing digits (6.0 -> '6', 2.5 -> '2.5').

    The result parses back to the same float, so re-saving an unchanged
    form keeps the stored value.
    """
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


@dataclass
class CalculatorConfig:
    """Coverage calculator attached to one product of one shop.

    ``(shop, product_id)`` is unique; ``id`` is generated by the store.
    """

    id: str
    shop: str
    product_id: str
    product_title: Optional[str] = None
    unit_type: str = DEFAULT_UNIT_TYPE
    unit_label: Optional[str] = None
    coverage: float = DEFAULT_COVERAGE
    coverage_unit: Optional[str] = None
    waste_factor: float = DEFAULT_WASTE_FACTOR
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "CalculatorConfig":
        return cls(
            id=row["id"],
            shop=row["shop"],
            product_id=row["product_id"],
            product_title=row["product_title"],
            unit_type=row["unit_type"],
            unit_label=row["unit_label"],
            coverage=row["coverage"],
            coverage_unit=row["coverage_unit"],
            waste_factor=row["waste_factor"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @property
    def waste_percent(self) -> int:
        """Waste factor as a whole percentage (1.15 -> 15)."""
        return int(round((self.waste_factor - 1) * 100))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
