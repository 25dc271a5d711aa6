from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from product_cart.constants import RELATED_TAB


def _pick(row: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in row and row[k] is not None:
            return row[k]
    return default


@dataclass(frozen=True)
class PriceList:
    id: str
    name: str

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "PriceList":
        return cls(id=str(_pick(row, "id", "Id")), name=str(_pick(row, "name", "Name", default="")))


@dataclass
class Product:
    product_id: str
    name: str
    product_code: str
    unit_price: float
    brand: Optional[str] = None
    family: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
    entered_qty: Optional[int] = None  # inline "add" field, reset after add/cancel

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Product":
        return cls(
            product_id=str(_pick(row, "productId", "product_id")),
            name=str(_pick(row, "name", default="")),
            product_code=str(_pick(row, "productCode", "product_code", default="")),
            unit_price=float(_pick(row, "unitPrice", "unit_price", default=0.0)),
            brand=_pick(row, "brand", "Brand"),
            family=_pick(row, "family", "ProductFamily"),
            image_urls=list(_pick(row, "imageUrls", "image_urls", default=[])),
        )


@dataclass
class CartLine:
    product_id: str
    name: str
    quantity: int
    unit_price: float
    line_total: float


@dataclass(frozen=True)
class OrderLine:
    product_ref: str
    quantity: int
    unit_price: float

    def to_dict(self) -> Dict[str, Any]:
        return {"productRef": self.product_ref, "quantity": self.quantity, "unitPrice": self.unit_price}


@dataclass(frozen=True)
class RecordContext:
    status: Optional[str]
    currency: Optional[str]

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "RecordContext":
        return cls(
            status=_pick(row, "status", "Status"),
            currency=_pick(row, "currencyCode", "currency", "CurrencyIsoCode"),
        )


@dataclass(frozen=True)
class Toast:
    title: str
    message: str
    severity: str  # success / error / warning / info


@dataclass(frozen=True)
class NavigationRequest:
    record_id: str
    action: str = "view"
    tab: str = RELATED_TAB
