from typing import Iterable

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup


def main_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text="/pricelists"), KeyboardButton(text="/products")],
            [KeyboardButton(text="/prev"), KeyboardButton(text="/next")],
            [KeyboardButton(text="/cart"), KeyboardButton(text="/submit")],
            [KeyboardButton(text="/back"), KeyboardButton(text="/help")],
        ],
        resize_keyboard=True,
    )


def categories_kb(names: Iterable[str]) -> ReplyKeyboardMarkup:
    rows = [[KeyboardButton(text=f"/category {n}")] for n in names]
    rows.append([KeyboardButton(text="/cancel")])
    return ReplyKeyboardMarkup(keyboard=rows, resize_keyboard=True, one_time_keyboard=True)


def details_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text="/dec"), KeyboardButton(text="/inc")],
            [KeyboardButton(text="/confirm"), KeyboardButton(text="/close")],
        ],
        resize_keyboard=True,
    )
