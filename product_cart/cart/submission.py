from __future__ import annotations

import logging
from typing import Callable, Optional

from product_cart.cart.store import CartStore
from product_cart.config import settings
from product_cart.constants import MODE_EDIT, MODE_SUMMARY
from product_cart.services.cart_service import CartService
from product_cart.services.scheduler import Scheduler, TaskHandle, cancel_handle

logger = logging.getLogger(__name__)


class SubmissionFlow:
    """
    Cart → order lines → remote submit → timed summary → auto close.

    `on_submitted` runs right after a successful submit (refresh, qty reset);
    `on_closed` runs when the summary closes (navigation).
    """

    def __init__(
        self,
        service: CartService,
        scheduler: Scheduler,
        store: CartStore,
        parent_id: str,
        countdown_seconds: int = settings.summary_countdown,
        on_submitted: Optional[Callable[[], None]] = None,
        on_closed: Optional[Callable[[], None]] = None,
    ) -> None:
        self.service = service
        self.scheduler = scheduler
        self.store = store
        self.parent_id = parent_id
        self.countdown_seconds = countdown_seconds
        self.on_submitted = on_submitted
        self.on_closed = on_closed

        self.mode = MODE_EDIT
        self.show_cart_modal = False
        self.countdown = countdown_seconds
        self.progress_width = 100.0
        self.is_submitting = False
        self._countdown_handle: Optional[TaskHandle] = None
        self._close_handle: Optional[TaskHandle] = None

    @property
    def is_summary(self) -> bool:
        return self.mode == MODE_SUMMARY

    async def submit(self) -> bool:
        """
        Returns True on success. Raises CartServiceError on remote failure,
        leaving mode, countdown and cart untouched.
        """
        if self.store.is_empty:
            logger.warning("submit skipped | cart is empty")
            return False
        if self.is_submitting:
            logger.debug("submit skipped | already in flight")
            return False

        lines = self.store.to_order_lines()
        self.is_submitting = True
        try:
            await self.service.submit_order_lines(self.parent_id, lines)
        finally:
            self.is_submitting = False

        logger.info("submitted %s order lines | parent=%s", len(lines), self.parent_id)
        self.mode = MODE_SUMMARY
        self.show_cart_modal = True
        self._start_countdown()
        if self.on_submitted:
            self.on_submitted()
        return True

    def _start_countdown(self) -> None:
        self._cancel_timers()
        self.countdown = self.countdown_seconds
        self.progress_width = 100.0
        self._countdown_handle = self.scheduler.call_every(1.0, self._on_countdown_tick)
        self._close_handle = self.scheduler.call_later(float(self.countdown_seconds), self.close_summary)

    def _on_countdown_tick(self) -> None:
        if not self.is_summary:
            cancel_handle(self._countdown_handle)
            self._countdown_handle = None
            return
        self.countdown = max(0, self.countdown - 1)
        self.progress_width = self.countdown / self.countdown_seconds * 100
        if self.countdown == 0:
            cancel_handle(self._countdown_handle)
            self._countdown_handle = None

    def _cancel_timers(self) -> None:
        cancel_handle(self._countdown_handle)
        cancel_handle(self._close_handle)
        self._countdown_handle = None
        self._close_handle = None

    def open_cart(self) -> bool:
        if self.is_summary:
            # summary stays on screen until it closes itself
            return True
        if self.store.is_empty:
            return False
        self.show_cart_modal = True
        return True

    def close_cart(self) -> None:
        if self.is_summary:
            self.close_summary()
            return
        self._cancel_timers()
        self.show_cart_modal = False

    def dispose(self) -> None:
        """Drops pending timers without finishing the summary."""
        self._cancel_timers()
        self.show_cart_modal = False
        self.mode = MODE_EDIT

    def close_summary(self) -> None:
        if not self.is_summary:
            return
        self._cancel_timers()
        self.store.clear()
        self.show_cart_modal = False
        self.mode = MODE_EDIT
        logger.info("summary closed | parent=%s", self.parent_id)
        if self.on_closed:
            self.on_closed()
