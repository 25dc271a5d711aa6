from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]  # .../product_cart repo
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int | None = None) -> int | None:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


def _get_float(*keys: str, default: float | None = None) -> float | None:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return float(v.replace(",", "."))


@dataclass(frozen=True)
class Settings:
    bot_token: str
    admin_id: int
    service_url: str
    service_token: str
    request_timeout: float
    page_size: int
    carousel_interval: float
    carousel_resume_delay: float
    summary_countdown: int
    available_units: int
    decimals: int


def load_settings() -> Settings:
    return Settings(
        bot_token=_get_env("BOT_TOKEN", "TELEGRAM_BOT_TOKEN", default="") or "",
        admin_id=_get_int("ADMIN_ID", "ADMIN_TG_ID", default=0) or 0,
        service_url=_get_env("CART_SERVICE_URL", "SERVICE_URL", default="") or "",
        service_token=_get_env("CART_SERVICE_TOKEN", default="") or "",
        request_timeout=_get_float("REQUEST_TIMEOUT", default=30.0) or 30.0,
        page_size=_get_int("PAGE_SIZE", "PRODUCTS_PER_PAGE", default=6) or 6,
        carousel_interval=_get_float("CAROUSEL_INTERVAL", default=2.0) or 2.0,
        carousel_resume_delay=_get_float("CAROUSEL_RESUME_DELAY", default=3.0) or 3.0,
        summary_countdown=_get_int("SUMMARY_COUNTDOWN", default=3) or 3,
        available_units=_get_int("AVAILABLE_UNITS", default=10053) or 10053,
        decimals=_get_int("DECIMALS", default=2),
    )


settings = load_settings()


def validate_settings(s: Settings = settings) -> None:
    if not s.bot_token:
        raise RuntimeError("BOT_TOKEN is empty. Set BOT_TOKEN in .env")
    if not s.admin_id:
        raise RuntimeError("ADMIN_ID is empty. Set ADMIN_ID (or ADMIN_TG_ID) in .env")
    if not s.service_url:
        raise RuntimeError("CART_SERVICE_URL is empty. Set CART_SERVICE_URL in .env")
