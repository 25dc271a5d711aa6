from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from product_cart.cart import view
from product_cart.cart.catalog import CatalogCache
from product_cart.cart.gallery import DetailsModal
from product_cart.cart.models import CartLine, NavigationRequest, Product, Toast
from product_cart.cart.store import CartStore
from product_cart.cart.submission import SubmissionFlow
from product_cart.config import settings
from product_cart.constants import (
    ORDER_ACTIVATED,
    SEVERITY_ERROR,
    SEVERITY_SUCCESS,
    SEVERITY_WARNING,
)
from product_cart.services.cart_service import CartService, CartServiceError
from product_cart.services.scheduler import Scheduler

logger = logging.getLogger(__name__)


class CartHost(Protocol):
    def show_toast(self, toast: Toast) -> None: ...

    def refresh(self) -> None: ...

    def navigate(self, request: NavigationRequest) -> None: ...


class ProductCartController:
    """Owns all cart state for one parent record."""

    def __init__(
        self,
        service: CartService,
        host: CartHost,
        scheduler: Scheduler,
        record_id: str,
        page_size: int = settings.page_size,
    ) -> None:
        self.service = service
        self.host = host
        self.record_id = record_id
        self.order_status: Optional[str] = None

        self.catalog = CatalogCache(service, record_id)
        self.filter = view.ViewFilter(page_size=page_size)
        self.cart = CartStore()
        self.modal = DetailsModal(scheduler)
        self.submission = SubmissionFlow(
            service,
            scheduler,
            self.cart,
            record_id,
            on_submitted=self._after_submit,
            on_closed=self._after_summary,
        )

    def toast(self, title: str, message: str, severity: str) -> None:
        self.host.show_toast(Toast(title, message, severity))

    # ---------------- context inputs ----------------

    def set_record_status(self, status: Optional[str]) -> None:
        self.order_status = status

    @property
    def is_order_activated(self) -> bool:
        return self.order_status == ORDER_ACTIVATED

    async def set_currency(self, currency: Optional[str]) -> None:
        self.catalog.set_currency(currency)
        if self.catalog.selected_price_list_id:
            await self.load_products()

    def _mutation_blocked(self) -> bool:
        if self.is_order_activated:
            self.toast("Order Activated", "Activated orders cannot be changed", SEVERITY_WARNING)
            return True
        return False

    # ---------------- catalog ----------------

    async def load_price_lists(self) -> bool:
        try:
            await self.catalog.refresh_price_lists()
        except CartServiceError as e:
            logger.warning("price lists failed | %s", e)
            self.toast("Error", f"Could not load price lists: {e}", SEVERITY_ERROR)
            return False
        return True

    async def select_price_list(self, price_list_id: str) -> bool:
        try:
            await self.catalog.select_price_list(price_list_id)
        except CartServiceError as e:
            logger.warning("price list selection failed | %s | %s", price_list_id, e)
            self.toast("Error", f"Could not apply price list: {e}", SEVERITY_ERROR)
            return False
        return True

    async def load_products(self) -> bool:
        try:
            return await self.catalog.load_products()
        except CartServiceError as e:
            logger.warning("product load failed | %s", e)
            self.toast("Error", f"Could not load products: {e}", SEVERITY_ERROR)
            return False

    def back_to_price_lists(self) -> None:
        self.modal.close()
        self.submission.close_cart()
        self.catalog.reset()
        self.filter.reset()
        self.cart.clear()

    def search_price_lists(self, term: str) -> None:
        self.catalog.search_price_lists(term)

    def toggle_all_price_lists(self) -> None:
        self.catalog.toggle_all_price_lists()

    # ---------------- filter / pagination ----------------

    def set_search(self, term: str) -> None:
        self.filter.search_term = term.lower()
        self.filter.current_page = 1

    def set_category(self, category: str) -> None:
        self.filter.selected_category = category
        self.filter.current_page = 1

    @property
    def filtered_products(self) -> List[Product]:
        return view.filtered_products(self.catalog.products, self.filter)

    @property
    def total_pages(self) -> int:
        return view.total_pages(len(self.filtered_products), self.filter.page_size)

    @property
    def paginated_products(self) -> List[Product]:
        return view.paginate(self.filtered_products, self.filter.current_page, self.filter.page_size)

    @property
    def has_products_on_page(self) -> bool:
        return bool(self.paginated_products)

    @property
    def can_go_previous(self) -> bool:
        return self.filter.current_page > 1

    @property
    def can_go_next(self) -> bool:
        return self.filter.current_page < self.total_pages

    def next_page(self) -> None:
        if self.can_go_next:
            self.filter.current_page += 1

    def previous_page(self) -> None:
        if self.can_go_previous:
            self.filter.current_page -= 1

    def go_to_page(self, page: int) -> None:
        if 1 <= page <= self.total_pages:
            self.filter.current_page = page

    @property
    def page_numbers(self) -> List[Dict[str, Any]]:
        return view.page_numbers(self.filter.current_page, self.total_pages)

    @property
    def categories(self) -> List[Dict[str, Any]]:
        return view.categories(self.catalog.products, self.filter.selected_category)

    @property
    def show_search(self) -> bool:
        return bool(self.catalog.products)

    # ---------------- cart ----------------

    @property
    def cart_lines(self) -> List[CartLine]:
        return self.cart.lines

    @property
    def total_amount(self) -> float:
        return self.cart.total_amount

    @property
    def has_cart_items(self) -> bool:
        return not self.cart.is_empty

    def set_entered_qty(self, product_id: str, raw: Any) -> None:
        product = self.catalog.find_product(product_id)
        if product is not None:
            product.entered_qty = raw

    def add_entered(self, product_id: str) -> bool:
        product = self.catalog.find_product(product_id)
        if product is None:
            self.toast("Error", "Product not found", SEVERITY_ERROR)
            return False
        if self._mutation_blocked():
            return False
        ok, err = self.cart.add_line(product, product.entered_qty)
        if not ok:
            self.toast("Invalid Quantity", err, SEVERITY_ERROR)
            return False
        self.catalog.reset_entered_qty(product_id)
        return True

    def quick_add(self, product_id: str) -> bool:
        product = self.catalog.find_product(product_id)
        if product is None:
            self.toast("Error", "Product not found", SEVERITY_ERROR)
            return False
        if self._mutation_blocked():
            return False
        ok, err = self.cart.quick_add(product)
        if not ok:
            self.toast("Invalid Quantity", err, SEVERITY_ERROR)
            return False
        self.toast("Success", f"{product.name} added to cart", SEVERITY_SUCCESS)
        return True

    def update_line_qty(self, product_id: str, raw: Any) -> bool:
        if self._mutation_blocked():
            return False
        ok, result = self.cart.update_line_qty(product_id, raw)
        if not ok:
            self.toast("Invalid Quantity", result, SEVERITY_ERROR)
            return False
        if result == "removed":
            self.toast("Success", "Product removed from cart", SEVERITY_SUCCESS)
        return True

    def remove_line(self, product_id: str) -> bool:
        if not self.cart.remove_line(product_id):
            return False
        self.toast("Success", "Product removed from cart", SEVERITY_SUCCESS)
        return True

    def open_cart(self) -> bool:
        return self.submission.open_cart()

    def close_cart(self) -> None:
        self.submission.close_cart()
        self.catalog.reset_entered_qty()

    def clear_cart(self) -> None:
        self.cart.clear()
        self.close_cart()

    def close_summary(self) -> None:
        self.submission.close_summary()

    # ---------------- details modal ----------------

    def open_details(self, product_id: str) -> bool:
        product = self.catalog.find_product(product_id)
        if product is None:
            return False
        self.modal.open(product)
        return True

    def close_details(self) -> None:
        self.modal.close()

    @property
    def disable_add_details(self) -> bool:
        return self.modal.disable_add(self.is_order_activated)

    def confirm_details_add(self) -> bool:
        if not self.modal.is_open:
            return False
        if self._mutation_blocked():
            return False
        name = self.modal.state.product.name
        ok, err = self.modal.confirm_add(self.cart)
        if not ok:
            self.toast("Invalid Quantity", err, SEVERITY_ERROR)
            return False
        self.toast("Success", f"{name} added to cart", SEVERITY_SUCCESS)
        return True

    # ---------------- submission ----------------

    async def submit(self) -> bool:
        try:
            return await self.submission.submit()
        except CartServiceError as e:
            logger.warning("submit failed | parent=%s | %s", self.record_id, e)
            self.toast("Error", f"Could not save products: {e}", SEVERITY_ERROR)
            return False

    def _after_submit(self) -> None:
        self.catalog.reset_entered_qty()
        self.host.refresh()

    def _after_summary(self) -> None:
        self.catalog.reset_entered_qty()
        self.host.navigate(NavigationRequest(record_id=self.record_id))

    def dispose(self) -> None:
        """Cancels every pending timer; used when the host drops the controller."""
        self.modal.close()
        self.submission.dispose()
