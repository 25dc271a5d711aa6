import asyncio
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from product_cart.cart.controller import ProductCartController
from product_cart.cart.models import NavigationRequest, OrderLine, PriceList, Product, RecordContext, Toast
from product_cart.services.cart_service import CartServiceError


class ManualHandle:
    def __init__(self, scheduler: "ManualScheduler", due: float, interval: Optional[float], callback: Callable[[], None]):
        self.scheduler = scheduler
        self.due = due
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Timers that only fire when a test advances the clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: List[ManualHandle] = []

    def call_later(self, delay, callback):
        h = ManualHandle(self, self.now + delay, None, callback)
        self.handles.append(h)
        return h

    def call_every(self, interval, callback):
        h = ManualHandle(self, self.now + interval, interval, callback)
        self.handles.append(h)
        return h

    @property
    def active(self) -> List[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        end = self.now + seconds
        while True:
            due = [h for h in self.active if h.due <= end + 1e-9]
            if not due:
                break
            h = min(due, key=lambda x: x.due)
            self.now = h.due
            if h.interval is None:
                h.cancelled = True
            else:
                h.due += h.interval
            h.callback()
        self.now = end


class FakeService:
    def __init__(self) -> None:
        self.price_lists: List[PriceList] = [PriceList("A", "Standard"), PriceList("B", "Wholesale")]
        self.products: Dict[str, List[dict]] = {}
        self.record = RecordContext(status="Draft", currency="USD")
        self.calls: List[tuple] = []
        self.fail: Dict[str, Exception] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.submitted: List[List[OrderLine]] = []

    async def _maybe(self, name: str) -> None:
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        err = self.fail.get(name)
        if err is not None:
            raise err

    async def list_price_lists(self):
        self.calls.append(("list_price_lists",))
        await self._maybe("list_price_lists")
        return list(self.price_lists)

    async def associate_price_list(self, parent_id, price_list_id):
        self.calls.append(("associate_price_list", parent_id, price_list_id))
        await self._maybe("associate_price_list")

    async def fetch_products(self, price_list_id, currency_code):
        self.calls.append(("fetch_products", price_list_id, currency_code))
        await self._maybe("fetch_products")
        return [Product.from_dict(r) for r in self.products.get(price_list_id, [])]

    async def submit_order_lines(self, parent_id, lines: Sequence[OrderLine]):
        self.calls.append(("submit_order_lines", parent_id, len(lines)))
        await self._maybe("submit_order_lines")
        self.submitted.append(list(lines))

    async def fetch_record_context(self, record_id):
        self.calls.append(("fetch_record_context", record_id))
        await self._maybe("fetch_record_context")
        return self.record


class RecordingHost:
    def __init__(self) -> None:
        self.toasts: List[Toast] = []
        self.refreshes = 0
        self.navigations: List[NavigationRequest] = []

    def show_toast(self, toast):
        self.toasts.append(toast)

    def refresh(self):
        self.refreshes += 1

    def navigate(self, request):
        self.navigations.append(request)

    @property
    def severities(self) -> List[str]:
        return [t.severity for t in self.toasts]


def make_product(pid, name=None, code=None, price=10.0, brand=None, family=None, images=None) -> Product:
    return Product(
        product_id=pid,
        name=name or f"Product {pid}",
        product_code=code or f"CODE-{pid}",
        unit_price=price,
        brand=brand,
        family=family,
        image_urls=list(images or []),
    )


def product_row(pid, name=None, price=10.0, **extra) -> dict:
    row = {"productId": pid, "name": name or f"Product {pid}", "productCode": f"CODE-{pid}", "unitPrice": price}
    row.update(extra)
    return row


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def service():
    return FakeService()


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def controller(service, host, scheduler):
    return ProductCartController(service, host, scheduler, record_id="801xx0000001", page_size=6)


@pytest.fixture
def boom():
    return CartServiceError("boom", status=500)
