from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from product_cart.cart.models import PriceList, Product
from product_cart.cart.view import filter_price_lists
from product_cart.constants import TOP_PRICE_LISTS
from product_cart.services.cart_service import CartService, CartServiceError

logger = logging.getLogger(__name__)


class CatalogCache:
    """
    Price lists + products resolved for the selected (price list, currency).

    Every selection or reset bumps `generation`; a remote call that completes
    under an older generation is dropped, so a slow fetch for a previous
    price list never overwrites the current one.
    """

    def __init__(self, service: CartService, parent_id: str) -> None:
        self.service = service
        self.parent_id = parent_id
        self.price_lists: List[PriceList] = []
        self.products: List[Product] = []
        self.selected_price_list_id: Optional[str] = None
        self.currency: Optional[str] = None
        self.price_list_search = ""
        self.show_all_price_lists = False
        self.is_loading = False
        self.generation = 0
        self._in_flight: Optional[Tuple[int, str, str]] = None

    # ---------------- price lists ----------------

    def set_price_lists(self, rows: Sequence[PriceList]) -> None:
        self.price_lists = list(rows)

    async def refresh_price_lists(self) -> None:
        self.set_price_lists(await self.service.list_price_lists())

    def search_price_lists(self, term: str) -> None:
        self.price_list_search = term.lower()

    def toggle_all_price_lists(self) -> None:
        self.show_all_price_lists = not self.show_all_price_lists

    def _listed(self, rows: Sequence[PriceList]) -> List[Dict[str, Any]]:
        return [
            {"id": pl.id, "name": pl.name, "is_selected": pl.id == self.selected_price_list_id}
            for pl in rows
        ]

    @property
    def filtered_price_lists(self) -> List[Dict[str, Any]]:
        return self._listed(filter_price_lists(self.price_lists, self.price_list_search))

    @property
    def top_price_lists(self) -> List[Dict[str, Any]]:
        return self.filtered_price_lists[:TOP_PRICE_LISTS]

    @property
    def has_price_lists(self) -> bool:
        return bool(self.price_lists)

    def find_product(self, product_id: str) -> Optional[Product]:
        for p in self.products:
            if p.product_id == product_id:
                return p
        return None

    # ---------------- selection / loading ----------------

    async def select_price_list(self, price_list_id: str) -> None:
        """Raises CartServiceError when the association call fails."""
        self.generation += 1
        gen = self.generation
        previous = self.selected_price_list_id
        self.selected_price_list_id = price_list_id
        self.show_all_price_lists = False

        try:
            await self.service.associate_price_list(self.parent_id, price_list_id)
        except CartServiceError:
            if gen == self.generation:
                self.selected_price_list_id = previous
            raise
        if gen != self.generation:
            logger.info("price list %s superseded before association finished", price_list_id)
            return
        await self.load_products()

    async def load_products(self) -> bool:
        """
        Returns True when the product list was replaced.
        Raises CartServiceError when the fetch fails; products stay as they were.
        """
        if not self.selected_price_list_id or not self.currency:
            logger.debug("load skipped | price_list=%s currency=%s", self.selected_price_list_id, self.currency)
            return False

        key = (self.generation, self.selected_price_list_id, self.currency)
        if self.is_loading and self._in_flight == key:
            logger.debug("load skipped | already loading %s", key)
            return False

        self.is_loading = True
        self._in_flight = key
        try:
            rows = await self.service.fetch_products(key[1], key[2])
        finally:
            if self._in_flight == key:
                self.is_loading = False
                self._in_flight = None

        if key != (self.generation, self.selected_price_list_id, self.currency):
            logger.info("dropping stale products for %s", key)
            return False

        for p in rows:
            p.entered_qty = None
        self.products = list(rows)
        logger.info("loaded %s products | price_list=%s currency=%s", len(rows), key[1], key[2])
        return True

    def set_currency(self, currency: Optional[str]) -> None:
        self.currency = currency

    def reset(self) -> None:
        self.generation += 1
        self.selected_price_list_id = None
        self.price_list_search = ""
        self.show_all_price_lists = False
        self.products = []
        self.is_loading = False
        self._in_flight = None

    # ---------------- inline qty ----------------

    def reset_entered_qty(self, product_id: Optional[str] = None) -> None:
        for p in self.products:
            if product_id is None or p.product_id == product_id:
                p.entered_qty = None
