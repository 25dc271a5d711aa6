from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from product_cart.cart.models import Product
from product_cart.cart.store import INVALID_QTY, CartStore
from product_cart.config import settings
from product_cart.services.scheduler import Scheduler, TaskHandle
from product_cart.utils.validators import parse_qty

logger = logging.getLogger(__name__)

TASK_NONE = "none"
TASK_CAROUSEL = "carousel"
TASK_RESUME = "resume"


@dataclass
class PendingTask:
    kind: str = TASK_NONE
    handle: Optional[TaskHandle] = None

    def cancel(self) -> None:
        if self.handle is not None:
            self.handle.cancel()
        self.kind = TASK_NONE
        self.handle = None


@dataclass
class ModalState:
    product: Product
    available_units: int
    session: int
    quantity: int = 1
    image_index: int = 0
    is_hovered: bool = False
    pending: PendingTask = field(default_factory=PendingTask)

    @property
    def image_count(self) -> int:
        return len(self.product.image_urls)


class DetailsModal:
    """
    Product detail overlay: Closed (state is None) / Open.

    At most one timer is pending at any moment: the carousel interval or the
    resume delay after a manual image pick. Timer callbacks carry the session
    number they were scheduled under and do nothing once it is stale.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        carousel_interval: float = settings.carousel_interval,
        resume_delay: float = settings.carousel_resume_delay,
        available_units: int = settings.available_units,
    ) -> None:
        self.scheduler = scheduler
        self.carousel_interval = carousel_interval
        self.resume_delay = resume_delay
        self.default_available_units = available_units
        self.state: Optional[ModalState] = None
        self._sessions = 0

    @property
    def is_open(self) -> bool:
        return self.state is not None

    # ---------------- open / close ----------------

    def open(self, product: Product) -> None:
        self.close()
        self._sessions += 1
        self.state = ModalState(
            product=product,
            available_units=self.default_available_units,
            session=self._sessions,
        )
        self._start_carousel()

    def close(self) -> None:
        if self.state is None:
            return
        self.state.pending.cancel()
        self.state = None

    # ---------------- carousel ----------------

    def _is_current(self, session: int) -> bool:
        return self.state is not None and self.state.session == session

    def _start_carousel(self) -> None:
        st = self.state
        if st is None or st.image_count < 2:
            return
        st.pending.cancel()
        session = st.session
        handle = self.scheduler.call_every(self.carousel_interval, lambda: self._on_tick(session))
        st.pending = PendingTask(TASK_CAROUSEL, handle)

    def _on_tick(self, session: int) -> None:
        if not self._is_current(session):
            return
        self.next_image()

    def _on_resume(self, session: int) -> None:
        if not self._is_current(session):
            return
        st = self.state
        st.pending = PendingTask()
        if st.is_hovered:
            return
        self._start_carousel()

    @property
    def is_carousel_active(self) -> bool:
        return self.state is not None and self.state.pending.kind == TASK_CAROUSEL

    def next_image(self) -> None:
        st = self.state
        if st is not None and st.image_count > 1:
            st.image_index = (st.image_index + 1) % st.image_count

    def hover_enter(self) -> None:
        if self.state is None:
            return
        self.state.is_hovered = True
        self.state.pending.cancel()

    def hover_leave(self) -> None:
        if self.state is None:
            return
        self.state.is_hovered = False
        self._start_carousel()

    def select_image(self, index: int) -> None:
        st = self.state
        if st is None or not 0 <= index < st.image_count:
            return
        st.image_index = index
        st.pending.cancel()
        session = st.session
        handle = self.scheduler.call_later(self.resume_delay, lambda: self._on_resume(session))
        st.pending = PendingTask(TASK_RESUME, handle)

    # ---------------- quantity ----------------

    def increment(self) -> None:
        st = self.state
        if st is not None and st.quantity < st.available_units:
            st.quantity += 1

    def decrement(self) -> None:
        st = self.state
        if st is not None and st.quantity > 1:
            st.quantity -= 1

    def set_quantity(self, raw: Any) -> None:
        st = self.state
        if st is None:
            return
        q = parse_qty(raw)
        if q is not None and 0 < q <= st.available_units:
            st.quantity = q

    # ---------------- derived ----------------

    @property
    def selected_image(self) -> Optional[str]:
        st = self.state
        if st is None or not st.image_count:
            return None
        return st.product.image_urls[st.image_index]

    @property
    def product_images(self) -> List[Dict[str, Any]]:
        st = self.state
        if st is None:
            return []
        return [
            {"url": url, "index": i, "is_selected": i == st.image_index}
            for i, url in enumerate(st.product.image_urls)
        ]

    @property
    def disable_decrement(self) -> bool:
        return self.state is None or self.state.quantity <= 1

    def disable_add(self, order_activated: bool) -> bool:
        return order_activated or self.state is None or self.state.quantity <= 0

    # ---------------- confirm ----------------

    def confirm_add(self, store: CartStore) -> Tuple[bool, str]:
        st = self.state
        if st is None:
            return False, "nothing selected"
        if not st.quantity or st.quantity <= 0:
            return False, INVALID_QTY
        ok, err = store.add_line(st.product, st.quantity)
        if not ok:
            return False, err
        logger.info("modal add | product=%s qty=%s", st.product.product_id, st.quantity)
        self.close()
        return True, "ok"
