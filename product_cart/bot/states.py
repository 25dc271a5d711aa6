from aiogram.fsm.state import State, StatesGroup


class CartInput(StatesGroup):
    waiting_search = State()
    waiting_record = State()
