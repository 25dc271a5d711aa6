from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from product_cart.cart.models import CartLine, OrderLine, Product
from product_cart.utils.formatters import line_total
from product_cart.utils.validators import parse_qty

INVALID_QTY = "Enter quantity greater than 0"


class CartStore:
    """Cart lines keyed by product id, in the order they were first added."""

    def __init__(self) -> None:
        self._lines: Dict[str, CartLine] = {}

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def get(self, product_id: str) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total_amount(self) -> float:
        return sum(ln.line_total for ln in self._lines.values())

    def add_line(self, product: Product, qty: Any) -> Tuple[bool, str]:
        q = parse_qty(qty)
        if q is None or q <= 0:
            return False, INVALID_QTY

        line = self._lines.get(product.product_id)
        if line is not None:
            # цену берём из корзины, а не из (возможно обновлённого) каталога
            line.quantity += q
            line.line_total = line_total(line.quantity, line.unit_price)
        else:
            self._lines[product.product_id] = CartLine(
                product_id=product.product_id,
                name=product.name,
                quantity=q,
                unit_price=product.unit_price,
                line_total=line_total(q, product.unit_price),
            )
        return True, "ok"

    def quick_add(self, product: Product) -> Tuple[bool, str]:
        return self.add_line(product, 1)

    def update_line_qty(self, product_id: str, qty: Any) -> Tuple[bool, str]:
        """
        Absolute quantity update.
        qty <= 0 removes the line; a non-numeric qty is rejected.
        """
        q = parse_qty(qty)
        if q is None:
            return False, INVALID_QTY

        line = self._lines.get(product_id)
        if line is None:
            return True, "ok"
        if q <= 0:
            del self._lines[product_id]
            return True, "removed"

        line.quantity = q
        line.line_total = line_total(q, line.unit_price)
        return True, "ok"

    def remove_line(self, product_id: str) -> bool:
        return self._lines.pop(product_id, None) is not None

    def clear(self) -> None:
        self._lines.clear()

    def to_order_lines(self) -> List[OrderLine]:
        return [
            OrderLine(product_ref=ln.product_id, quantity=ln.quantity, unit_price=ln.unit_price)
            for ln in self._lines.values()
        ]
