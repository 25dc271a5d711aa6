from __future__ import annotations

import html
import logging
from typing import Dict, Optional

from aiogram import Bot, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, ReplyKeyboardRemove

from product_cart.bot.host import ChatHost
from product_cart.bot.keyboards import categories_kb, details_kb, main_kb
from product_cart.bot.states import CartInput
from product_cart.cart.controller import ProductCartController
from product_cart.config import settings
from product_cart.services.cart_service import CartService, CartServiceError
from product_cart.services.scheduler import AsyncioScheduler
from product_cart.utils.formatters import money

logger = logging.getLogger(__name__)

router = Router()

SERVICE: Optional[CartService] = None
CONTROLLERS: Dict[int, ProductCartController] = {}  # chat_id -> controller


def setup_service(service: CartService) -> None:
    global SERVICE
    SERVICE = service


def _is_admin(message: Message) -> bool:
    try:
        return int(message.from_user.id) == int(settings.admin_id)
    except (AttributeError, TypeError, ValueError):
        return False


def _arg(command: CommandObject) -> str:
    return (command.args or "").strip()


def _controller(message: Message) -> Optional[ProductCartController]:
    return CONTROLLERS.get(message.chat.id)


# ---------------- text rendering ----------------

def render_price_lists(ctl: ProductCartController) -> str:
    rows = ctl.catalog.filtered_price_lists if ctl.catalog.show_all_price_lists else ctl.catalog.top_price_lists
    if not rows:
        return "Прайс-листов не найдено."
    lines = ["<b>Прайс-листы:</b>"]
    for i, r in enumerate(rows, start=1):
        mark = " ✅" if r["is_selected"] else ""
        lines.append(f"{i}. {html.escape(r['name'])}{mark}")
    total = len(ctl.catalog.filtered_price_lists)
    if not ctl.catalog.show_all_price_lists and total > len(rows):
        lines.append(f"… ещё {total - len(rows)}: /pricelists all")
    lines.append("\nВыбор: /pb N")
    return "\n".join(lines)


def render_products(ctl: ProductCartController) -> str:
    if ctl.catalog.is_loading:
        return "⏳ Загружаю товары…"
    if not ctl.has_products_on_page:
        return "Товаров не найдено."
    currency = ctl.catalog.currency
    lines = [f"<b>{html.escape(ctl.filter.selected_category)}</b> — стр. {ctl.filter.current_page}/{ctl.total_pages}"]
    for p in ctl.paginated_products:
        brand = f" [{html.escape(p.brand)}]" if p.brand else ""
        lines.append(
            f"• <code>{html.escape(p.product_id)}</code> {html.escape(p.name)}{brand} ({html.escape(p.product_code)})"
            f" — {money(p.unit_price, currency)}"
        )
    return "\n".join(lines)


def render_cart(ctl: ProductCartController) -> str:
    if not ctl.has_cart_items:
        return "🧺 Корзина пуста."
    currency = ctl.catalog.currency
    title = "Итог заказа" if ctl.submission.is_summary else "Корзина"
    lines = [f"🧺 <b>{title}</b>"]
    for ln in ctl.cart_lines:
        lines.append(f"• <code>{html.escape(ln.product_id)}</code> {html.escape(ln.name)} × {ln.quantity} = {money(ln.line_total, currency)}")
    lines.append(f"\n<b>Итого: {money(ctl.total_amount, currency)}</b>")
    return "\n".join(lines)


def render_details(ctl: ProductCartController) -> str:
    st = ctl.modal.state
    if st is None:
        return "Карточка товара закрыта."
    p = st.product
    lines = [
        f"<b>{html.escape(p.name)}</b> ({html.escape(p.product_code)})",
        f"Бренд: {html.escape(p.brand or p.name)}",
        f"Цена: {money(p.unit_price, ctl.catalog.currency)}",
        f"Количество: {st.quantity} (доступно {st.available_units})",
    ]
    if ctl.modal.selected_image:
        lines.append(f"Фото {st.image_index + 1}/{st.image_count}: {html.escape(ctl.modal.selected_image)}")
    return "\n".join(lines)


# ---------------- session ----------------

@router.message(Command("start"))
async def cmd_start(message: Message, command: CommandObject, state: FSMContext, bot: Bot):
    if not _is_admin(message):
        return
    record_id = _arg(command)
    if not record_id:
        await state.set_state(CartInput.waiting_record)
        await message.answer("Введите ID записи (заказа).\nОтмена: /cancel", reply_markup=ReplyKeyboardRemove())
        return
    await _open_record(message, bot, record_id)


@router.message(CartInput.waiting_record)
async def start_wait_record(message: Message, state: FSMContext, bot: Bot):
    if not _is_admin(message):
        return
    record_id = (message.text or "").strip()
    if record_id == "/cancel":
        await state.clear()
        await message.answer("❎ Отменено.", reply_markup=main_kb())
        return
    if not record_id or record_id.startswith("/"):
        await message.answer("Введите ID записи текстом. Отмена: /cancel")
        return
    await state.clear()
    await _open_record(message, bot, record_id)


async def _open_record(message: Message, bot: Bot, record_id: str) -> None:
    if SERVICE is None:
        await message.answer("❌ Сервис корзины не настроен")
        return

    old = CONTROLLERS.pop(message.chat.id, None)
    if old is not None:
        old.dispose()

    ctl = ProductCartController(SERVICE, ChatHost(bot, message.chat.id), AsyncioScheduler(), record_id)
    CONTROLLERS[message.chat.id] = ctl
    logger.info("cart opened | chat=%s record=%s", message.chat.id, record_id)

    try:
        context = await SERVICE.fetch_record_context(record_id)
    except CartServiceError as e:
        await message.answer(f"❌ Не удалось прочитать запись: {html.escape(str(e))}")
        return
    ctl.set_record_status(context.status)
    await ctl.set_currency(context.currency)
    await ctl.load_price_lists()

    await message.answer(
        f"🧺 Корзина для записи <b>{html.escape(record_id)}</b> "
        f"(статус: {html.escape(context.status or '-')}, валюта: {html.escape(context.currency or '-')})",
        reply_markup=main_kb(),
    )
    await message.answer(render_price_lists(ctl))


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext):
    if not _is_admin(message):
        return
    await state.clear()
    await message.answer("❎ Отменено. Можно вводить команды заново.", reply_markup=main_kb())


@router.message(Command("help"))
async def cmd_help(message: Message):
    if not _is_admin(message):
        return

    text = (
        "<b>Product cart — команды</b>\n\n"
        "<b>Запись</b>\n"
        "/start RECORD_ID — открыть корзину для записи\n"
        "/cancel — отмена ввода\n\n"
        "<b>Прайс-листы</b>\n"
        "/pricelists [поиск|all] — список\n"
        "/pb N — выбрать прайс-лист\n"
        "/back — сменить прайс-лист (корзина очищается)\n\n"
        "<b>Каталог</b>\n"
        "/products — текущая страница\n"
        "/search [текст] — поиск по названию, коду, бренду\n"
        "/category [NAME] — фильтр по семейству\n"
        "/prev /next /page N — страницы\n\n"
        "<b>Карточка товара</b>\n"
        "/details ID — открыть\n"
        "/img N — выбрать фото\n"
        "/qty N /inc /dec — количество\n"
        "/confirm — добавить в корзину, /close — закрыть\n\n"
        "<b>Корзина</b>\n"
        "/quick ID — добавить 1 шт\n"
        "/add ID QTY — добавить QTY шт\n"
        "/cart — показать корзину\n"
        "/setqty ID QTY — изменить количество (0 — удалить)\n"
        "/remove ID — удалить позицию\n"
        "/clear — очистить корзину\n"
        "/submit — сохранить позиции в заказ\n"
    )
    await message.answer(text)


# ---------------- price lists ----------------

def pick_price_list(ctl: ProductCartController, raw: str) -> Optional[dict]:
    """Row N (1-based) of the full price-list listing, or None."""
    try:
        n = int(raw)
    except ValueError:
        return None
    listed = ctl.catalog.filtered_price_lists
    if n < 1 or n > len(listed):
        return None
    return listed[n - 1]


@router.message(Command("pricelists"))
async def cmd_pricelists(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        await message.answer("Сначала откройте запись: /start RECORD_ID")
        return

    term = _arg(command)
    if term.lower() == "all":
        ctl.toggle_all_price_lists()
    else:
        ctl.search_price_lists(term)
    await message.answer(render_price_lists(ctl))


@router.message(Command("pb"))
async def cmd_pb(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        await message.answer("Сначала откройте запись: /start RECORD_ID")
        return

    row = pick_price_list(ctl, _arg(command))
    if row is None:
        await message.answer("Формат: /pb N (номер из /pricelists)")
        return

    if await ctl.select_price_list(row["id"]):
        await message.answer(f"✅ Прайс-лист: <b>{html.escape(row['name'])}</b>")
        await message.answer(render_products(ctl))


@router.message(Command("back"))
async def cmd_back(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    ctl.back_to_price_lists()
    await message.answer(render_price_lists(ctl))


# ---------------- catalog ----------------

@router.message(Command("products"))
async def cmd_products(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        await message.answer("Сначала откройте запись: /start RECORD_ID")
        return
    await message.answer(render_products(ctl))


@router.message(Command("search"))
async def cmd_search(message: Message, command: CommandObject, state: FSMContext):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    if not ctl.show_search:
        await message.answer("Сначала выберите прайс-лист: /pricelists")
        return

    term = _arg(command)
    if not term:
        await state.set_state(CartInput.waiting_search)
        await message.answer("Введите текст поиска, или '-' чтобы сбросить.\nОтмена: /cancel")
        return
    ctl.set_search(term)
    await message.answer(render_products(ctl))


@router.message(CartInput.waiting_search)
async def search_wait_term(message: Message, state: FSMContext):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    await state.clear()
    if ctl is None:
        return
    term = (message.text or "").strip()
    if term.startswith("/"):
        await message.answer("❎ Поиск отменён. Повторите команду.")
        return
    ctl.set_search("" if term == "-" else term)
    await message.answer(render_products(ctl))


@router.message(Command("category"))
async def cmd_category(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return

    name = _arg(command)
    if not name:
        cats = ctl.categories
        await message.answer(
            "Выберите категорию:",
            reply_markup=categories_kb(c["name"] for c in cats),
        )
        return
    ctl.set_category(name)
    await message.answer(render_products(ctl), reply_markup=main_kb())


@router.message(Command("next"))
async def cmd_next(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    ctl.next_page()
    await message.answer(render_products(ctl))


@router.message(Command("prev"))
async def cmd_prev(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    ctl.previous_page()
    await message.answer(render_products(ctl))


@router.message(Command("page"))
async def cmd_page(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    try:
        ctl.go_to_page(int(_arg(command)))
    except ValueError:
        await message.answer(f"Формат: /page N (1..{ctl.total_pages})")
        return
    await message.answer(render_products(ctl))


# ---------------- details ----------------

@router.message(Command("details"))
async def cmd_details(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    if not ctl.open_details(_arg(command)):
        await message.answer("❌ Товар не найден")
        return
    await message.answer(render_details(ctl), reply_markup=details_kb())


@router.message(Command("img"))
async def cmd_img(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None or not ctl.modal.is_open:
        return
    try:
        ctl.modal.select_image(int(_arg(command)) - 1)
    except ValueError:
        await message.answer("Формат: /img N")
        return
    await message.answer(render_details(ctl))


@router.message(Command("qty"))
async def cmd_qty(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None or not ctl.modal.is_open:
        return
    ctl.modal.set_quantity(_arg(command))
    await message.answer(render_details(ctl))


@router.message(Command("inc"))
async def cmd_inc(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None or not ctl.modal.is_open:
        return
    ctl.modal.increment()
    await message.answer(render_details(ctl))


@router.message(Command("dec"))
async def cmd_dec(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None or not ctl.modal.is_open:
        return
    ctl.modal.decrement()
    await message.answer(render_details(ctl))


@router.message(Command("confirm"))
async def cmd_confirm(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None or not ctl.modal.is_open:
        return
    if ctl.confirm_details_add():
        await message.answer(render_cart(ctl), reply_markup=main_kb())


@router.message(Command("close"))
async def cmd_close(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    if ctl.submission.is_summary:
        ctl.close_summary()
    else:
        ctl.close_details()
    await message.answer("Закрыто.", reply_markup=main_kb())


# ---------------- cart ----------------

@router.message(Command("quick"))
async def cmd_quick(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    ctl.quick_add(_arg(command))


@router.message(Command("add"))
async def cmd_add(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return

    parts = _arg(command).split()
    if len(parts) != 2:
        await message.answer("Формат: /add ID QTY")
        return
    product_id, qty_s = parts
    ctl.set_entered_qty(product_id, qty_s)
    if ctl.add_entered(product_id):
        await message.answer(render_cart(ctl))


@router.message(Command("cart"))
async def cmd_cart(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    ctl.open_cart()
    await message.answer(render_cart(ctl))


@router.message(Command("setqty"))
async def cmd_setqty(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return

    parts = _arg(command).split()
    if len(parts) != 2:
        await message.answer("Формат: /setqty ID QTY")
        return
    if ctl.update_line_qty(parts[0], parts[1]):
        await message.answer(render_cart(ctl))


@router.message(Command("remove"))
async def cmd_remove(message: Message, command: CommandObject):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    if not ctl.remove_line(_arg(command)):
        await message.answer("❌ Такой позиции нет в корзине")


@router.message(Command("clear"))
async def cmd_clear(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    ctl.clear_cart()
    await message.answer("🧺 Корзина очищена.")


@router.message(Command("submit"))
async def cmd_submit(message: Message):
    if not _is_admin(message):
        return
    ctl = _controller(message)
    if ctl is None:
        return
    if not ctl.has_cart_items:
        await message.answer("🧺 Корзина пуста.")
        return
    if await ctl.submit():
        await message.answer(render_cart(ctl) + f"\n\nЗакрою через {ctl.submission.countdown} сек.")
