from __future__ import annotations

import asyncio
import html
import logging
from typing import Set

from aiogram import Bot

from product_cart.cart.models import NavigationRequest, Toast
from product_cart.constants import SEVERITY_ERROR, SEVERITY_INFO, SEVERITY_SUCCESS, SEVERITY_WARNING

logger = logging.getLogger(__name__)

SEVERITY_PREFIX = {
    SEVERITY_SUCCESS: "✅",
    SEVERITY_ERROR: "❌",
    SEVERITY_WARNING: "⚠️",
    SEVERITY_INFO: "ℹ️",
}


def format_toast(toast: Toast) -> str:
    prefix = SEVERITY_PREFIX.get(toast.severity, SEVERITY_PREFIX[SEVERITY_INFO])
    return f"{prefix} <b>{html.escape(toast.title)}</b>\n{html.escape(toast.message)}"


def format_navigation(request: NavigationRequest) -> str:
    return f"↪️ Запись {request.record_id}: открыта вкладка «{request.tab}»"


class ChatHost:
    """Delivers controller side effects (toasts, refresh, navigation) to one chat."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self.bot = bot
        self.chat_id = chat_id
        self._tasks: Set[asyncio.Task] = set()

    def _send(self, text: str) -> None:
        task = asyncio.get_running_loop().create_task(self.bot.send_message(self.chat_id, text))
        self._tasks.add(task)
        task.add_done_callback(self._on_sent)

    def _on_sent(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("send to chat %s failed: %s", self.chat_id, task.exception())

    def show_toast(self, toast: Toast) -> None:
        self._send(format_toast(toast))

    def refresh(self) -> None:
        logger.info("record data refreshed | chat=%s", self.chat_id)
        self._send("🔄 Данные записи обновлены")

    def navigate(self, request: NavigationRequest) -> None:
        self._send(format_navigation(request))
