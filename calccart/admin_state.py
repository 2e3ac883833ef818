"""View state of the admin page.

The page is either browsing products or editing the calculator of one
product. Transitions:

    BROWSE --select_product--> EDIT
    EDIT   --save / cancel-->   BROWSE
    EDIT   --change_unit_type-> EDIT   (unit label and coverage unit follow the unit type)

Deleting a calculator happens from BROWSE and does not change the mode.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from calccart.models import (
    DEFAULT_UNIT_TYPE,
    DEFAULT_WASTE_FACTOR,
    CalculatorConfig,
    format_number,
    get_unit_option,
)

__all__ = ["ViewMode", "FormState", "ProductRow", "AdminViewState"]


class ViewMode(str, Enum):
    BROWSE = "browse"
    EDIT = "edit"


@dataclass
class FormState:
    """Calculator form fields, kept as strings like the HTML inputs."""

    unit_type: str = DEFAULT_UNIT_TYPE
    unit_label: str = "sqm"
    coverage: str = ""
    coverage_unit: str = "sqm/Liter"
    waste_factor: str = str(DEFAULT_WASTE_FACTOR)

    @classmethod
    def from_config(cls, config: CalculatorConfig) -> "FormState":
        return cls(
            unit_type=config.unit_type,
            unit_label=config.unit_label or "",
            coverage=format_number(config.coverage),
            coverage_unit=config.coverage_unit or "",
            waste_factor=format_number(config.waste_factor),
        )


@dataclass
class ProductRow:
    """An external product merged with its calculator, if any."""

    id: str
    title: str
    image_url: Optional[str] = None
    calculator: Optional[CalculatorConfig] = None

    @property
    def configured(self) -> bool:
        return self.calculator is not None


@dataclass
class AdminViewState:
    """Everything the admin template needs, with explicit transitions."""

    products: List[Dict[str, Any]] = field(default_factory=list)
    calculators: List[CalculatorConfig] = field(default_factory=list)
    mode: ViewMode = ViewMode.BROWSE
    selected_product: Optional[Dict[str, Any]] = None
    form: FormState = field(default_factory=FormState)

    def calculator_for(self, product_id: str) -> Optional[CalculatorConfig]:
        for calc in self.calculators:
            if calc.product_id == product_id:
                return calc
        return None

    def product_rows(self) -> List[ProductRow]:
        """External products in catalog order, each flagged configured or not."""
        rows = []
        for product in self.products:
            image = product.get("featuredImage") or {}
            rows.append(
                ProductRow(
                    id=product["id"],
                    title=product.get("title") or "",
                    image_url=image.get("url"),
                    calculator=self.calculator_for(product["id"]),
                )
            )
        return rows

    def select_product(self, product: Dict[str, Any]) -> None:
        """Enter EDIT for ``product`` ({"id", "title"}), pre-filled if configured."""
        self.selected_product = {"id": product["id"], "title": product.get("title") or ""}
        self.mode = ViewMode.EDIT

        existing = self.calculator_for(product["id"])
        self.form = FormState.from_config(existing) if existing else FormState()

    def change_unit_type(self, unit_type: str) -> None:
        """Switch unit type; label and coverage unit come from the lookup table.

        Raises:
            ValueError: for a unit type not in the lookup table.
        """
        option = get_unit_option(unit_type)
        if option is None:
            raise ValueError(f"Unknown unit type: {unit_type}")
        self.form.unit_type = option.value
        self.form.unit_label = option.unit
        self.form.coverage_unit = option.coverage_unit

    def update_form(self, coverage: Optional[str] = None, waste_factor: Optional[str] = None) -> None:
        if coverage is not None:
            self.form.coverage = coverage
        if waste_factor is not None:
            self.form.waste_factor = waste_factor

    def save(self) -> Dict[str, Any]:
        """Leave EDIT and return the 'create' submission for the mutation endpoint."""
        if self.mode is not ViewMode.EDIT or self.selected_product is None:
            raise RuntimeError("No product selected")

        submission = {
            "action": "create",
            "productId": self.selected_product["id"],
            "productTitle": self.selected_product["title"],
            "unitType": self.form.unit_type,
            "unitLabel": self.form.unit_label,
            "coverage": self.form.coverage,
            "coverageUnit": self.form.coverage_unit,
            "wasteFactor": self.form.waste_factor,
        }
        self._reset()
        return submission

    def cancel(self) -> None:
        """Leave EDIT without persisting anything."""
        self._reset()

    def _reset(self) -> None:
        self.mode = ViewMode.BROWSE
        self.selected_product = None
        self.form = FormState()
