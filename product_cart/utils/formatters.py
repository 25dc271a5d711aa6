from product_cart.config import settings


def money(v: float, currency: str | None = None) -> str:
    text = f"{v:.{settings.decimals}f}"
    return f"{text} {currency}" if currency else text


def line_total(qty: int, price: float) -> float:
    return round(qty * price, settings.decimals)
