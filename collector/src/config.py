"""Модуль настроек — переменные окружения и константы."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from src.errors import ConfigError

# .env лежит в корне проекта
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- WB API ---
DEFAULT_API_URL = "https://seller-analytics-api.wildberries.ru/"
DEFAULT_API_URL_COMPANIES = "https://advert-api.wildberries.ru/"
ACTIVE_CAMPAIGN_STATUS = 9

# --- Параметры запросов ---
REQUEST_TIMEOUT = 30  # секунды
RETRY_DELAY_SECONDS = 70.0
RETRY_MAX = 3

# --- Google Sheets ---
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# --- Логи ---
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_DIR.mkdir(exist_ok=True)


def _number(name: str, kind, default):
    """Читает числовую переменную окружения. Пустое значение даёт default."""
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigError(f"Некорректное значение {name}={raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Настройки одного запуска. Передаются в компоненты явно."""

    api_token: str
    api_url: str = DEFAULT_API_URL
    api_url_companies: str = DEFAULT_API_URL_COMPANIES
    sheet_id: str = ""
    credentials_file: str = "credentials.json"
    service_account_json: str = ""
    sheet_name: str = "Лист2"
    header_row: int = 6  # 1-based
    data_range: str = "A:Z"
    col_campaign_id: str = "ID кампании"
    col_views: str = "Показы"
    col_clicks: str = "Клики"
    col_clicks_cart: str = "Клики→корзина"
    col_cart_order: str = "Корзина→заказ"
    date_header_format: str = "%d.%m.%y"
    currency_symbol: str = "₽"
    reports_dir: Path = Path(".")
    report_workers: int = 4
    retry_delay: float = RETRY_DELAY_SECONDS
    retry_max: int = RETRY_MAX
    run_interval: float = 60.0

    @classmethod
    def from_env(cls, require_sheet: bool = False) -> Settings:
        """Собирает Settings из переменных окружения.

        Args:
            require_sheet: если True, GOOGLE_SHEET_ID тоже обязателен

        Raises:
            ConfigError: не заданы обязательные переменные
        """
        required = ["API_TOKEN"]
        if require_sheet:
            required.append("GOOGLE_SHEET_ID")
        missing = [name for name in required if not os.environ.get(name)]
        if missing:
            raise ConfigError(f"Не заданы переменные окружения: {', '.join(missing)}")

        env = os.environ.get
        return cls(
            api_token=os.environ["API_TOKEN"],
            api_url=env("API_URL") or DEFAULT_API_URL,
            api_url_companies=env("API_URL_COMPANIES") or DEFAULT_API_URL_COMPANIES,
            sheet_id=env("GOOGLE_SHEET_ID", ""),
            credentials_file=env("GOOGLE_CREDENTIALS_FILE") or "credentials.json",
            service_account_json=env("GOOGLE_SERVICE_ACCOUNT_JSON", ""),
            sheet_name=env("SHEET_NAME") or "Лист2",
            header_row=_number("HEADER_ROW", int, 6),
            data_range=env("DATA_RANGE") or "A:Z",
            col_campaign_id=env("COL_CAMPAIGN_ID") or "ID кампании",
            col_views=env("COL_VIEWS") or "Показы",
            col_clicks=env("COL_CLICKS") or "Клики",
            col_clicks_cart=env("COL_CLICKS_CART") or "Клики→корзина",
            col_cart_order=env("COL_CART_ORDER") or "Корзина→заказ",
            date_header_format=env("DATE_HEADER_FORMAT") or "%d.%m.%y",
            currency_symbol=env("CURRENCY_SYMBOL", "₽"),
            reports_dir=Path(env("REPORTS_DIR") or "."),
            report_workers=_number("REPORT_WORKERS", int, 4),
            retry_delay=_number("RETRY_DELAY_SECONDS", float, RETRY_DELAY_SECONDS),
            retry_max=_number("RETRY_MAX", int, RETRY_MAX),
            run_interval=_number("RUN_INTERVAL_SECONDS", float, 60.0),
        )
