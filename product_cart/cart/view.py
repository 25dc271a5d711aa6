from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from product_cart.cart.models import PriceList, Product
from product_cart.config import settings
from product_cart.constants import (
    ALL_PRODUCTS,
    CATEGORY_ICONS,
    DEFAULT_CATEGORY_ICON,
    PREDEFINED_CATEGORIES,
)


@dataclass
class ViewFilter:
    search_term: str = ""
    selected_category: str = ALL_PRODUCTS
    current_page: int = 1
    page_size: int = settings.page_size

    def reset(self) -> None:
        self.search_term = ""
        self.selected_category = ALL_PRODUCTS
        self.current_page = 1


def filter_by_category(products: Sequence[Product], category: str) -> List[Product]:
    if category == ALL_PRODUCTS:
        return list(products)
    wanted = category.strip()
    return [p for p in products if (p.family or "").strip() == wanted]


def _matches(p: Product, term: str) -> bool:
    if term in p.name.lower() or term in p.product_code.lower():
        return True
    return bool(p.brand) and term in p.brand.lower()


def filter_by_search(products: Sequence[Product], search_term: str) -> List[Product]:
    term = search_term.lower()
    if not term:
        return list(products)
    return [p for p in products if _matches(p, term)]


def filtered_products(products: Sequence[Product], vf: ViewFilter) -> List[Product]:
    return filter_by_search(filter_by_category(products, vf.selected_category), vf.search_term)


def total_pages(count: int, page_size: int) -> int:
    return max(1, math.ceil(count / page_size))


def paginate(items: Sequence[Product], page: int, page_size: int) -> List[Product]:
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


def page_numbers(current_page: int, pages: int) -> List[Dict[str, Any]]:
    return [{"number": i, "is_active": i == current_page} for i in range(1, pages + 1)]


def category_icon(name: str) -> str:
    return CATEGORY_ICONS.get(name, DEFAULT_CATEGORY_ICON)


def categories(products: Sequence[Product], selected: str) -> List[Dict[str, Any]]:
    names = {ALL_PRODUCTS, *PREDEFINED_CATEGORIES}
    names.update(p.family for p in products if p.family)
    return [
        {"name": n, "icon": category_icon(n), "is_active": n == selected}
        for n in sorted(names)
    ]


def filter_price_lists(price_lists: Sequence[PriceList], search_term: str) -> List[PriceList]:
    term = search_term.lower()
    if not term:
        return list(price_lists)
    return [pl for pl in price_lists if term in pl.name.lower()]
