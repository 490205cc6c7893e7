# portal/lifecycle/line_items.py
"""Editable proposal line items and their subtotal / tax / total."""
from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Optional

TAX_RATE = 0.10

SEED_DESCRIPTION = "Initial Setup & Planning"
SEED_PRICE = 500.0

EDITABLE_FIELDS = ("description", "quantity", "unit_price")


def _new_id() -> str:
    return uuid.uuid4().hex


def coerce_quantity(value: Any) -> int:
    """Integer quantity; anything unparsable becomes 0, negatives clamp to 0."""
    if isinstance(value, bool):
        return 0
    try:
        qty = int(str(value).strip())
    except (TypeError, ValueError):
        try:
            as_float = float(str(value).strip())
        except (TypeError, ValueError):
            return 0
        if math.isnan(as_float) or math.isinf(as_float):
            return 0
        qty = int(as_float)
    return max(qty, 0)


def coerce_price(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        price = float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(price) or math.isinf(price):
        return 0.0
    return max(price, 0.0)


@dataclass(frozen=True)
class LineItem:
    id: str
    description: str = ""
    quantity: int = 1
    unit_price: float = 0.0

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price

    def to_payload(self) -> dict:
        # the backend only ever receives the collapsed per-line price
        return {"description": self.description, "price": self.line_total}


@dataclass
class LineItemSheet:
    items: List[LineItem] = field(default_factory=list)

    @classmethod
    def seeded(cls) -> "LineItemSheet":
        return cls([LineItem(id=_new_id(), description=SEED_DESCRIPTION, quantity=1, unit_price=SEED_PRICE)])

    # ---- editing ----

    def add_item(self) -> LineItem:
        item = LineItem(id=_new_id(), description="", quantity=1, unit_price=0.0)
        self.items = [*self.items, item]
        return item

    def remove_item(self, item_id: str) -> None:
        # No minimum-row guard here; callers check ``can_remove`` first.
        self.items = [i for i in self.items if i.id != item_id]

    @property
    def can_remove(self) -> bool:
        return len(self.items) > 1

    def update_item(self, item_id: str, field_name: str, value: Any) -> None:
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown line item field: {field_name}")
        if field_name == "quantity":
            value = coerce_quantity(value)
        elif field_name == "unit_price":
            value = coerce_price(value)
        else:
            value = "" if value is None else str(value)
        self.items = [replace(i, **{field_name: value}) if i.id == item_id else i for i in self.items]

    def get(self, item_id: str) -> Optional[LineItem]:
        return next((i for i in self.items if i.id == item_id), None)

    # ---- totals ----

    @property
    def subtotal(self) -> float:
        return sum(i.quantity * i.unit_price for i in self.items)

    @property
    def tax(self) -> float:
        return round(self.subtotal * TAX_RATE, 2)

    @property
    def total(self) -> float:
        return self.subtotal + self.tax

    def to_payload(self) -> list[dict]:
        return [i.to_payload() for i in self.items]

    # ---- session round trip ----

    def to_state(self) -> list[dict]:
        return [
            {"id": i.id, "description": i.description, "quantity": i.quantity, "unit_price": i.unit_price}
            for i in self.items
        ]

    @classmethod
    def from_state(cls, state: Optional[Iterable[dict]]) -> "LineItemSheet":
        if not state:
            return cls.seeded()
        items = []
        for raw in state:
            if not isinstance(raw, dict):
                continue
            items.append(LineItem(
                id=str(raw.get("id") or _new_id()),
                description=str(raw.get("description") or ""),
                quantity=coerce_quantity(raw.get("quantity", 1)),
                unit_price=coerce_price(raw.get("unit_price", 0)),
            ))
        return cls(items) if items else cls.seeded()
