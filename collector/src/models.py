"""Модели данных."""

from __future__ import annotations

from dataclasses import dataclass


def normalize_id(value) -> str:
    """Приводит id кампании/отчёта к строке.

    123, "123", " 123 " и 123.0 дают "123". None даёт "".
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    # Sheets иногда отдаёт числовые id как "123.0"
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    return text


def percent(numerator: float, denominator: float) -> str:
    """numerator / denominator * 100 с двумя знаками и %. При нулевом знаменателе "0.00%"."""
    if not denominator:
        return "0.00%"
    return f"{numerator / denominator * 100:.2f}%"


@dataclass
class ReportDescriptor:
    """Скачанный отчёт nm-report."""

    id: str
    payload: str  # CSV-текст, может быть пустым

    @property
    def filename(self) -> str:
        return f"{self.id}.csv"


@dataclass
class CampaignStat:
    """Статистика одной кампании за один день."""

    campaign_id: str
    date: str  # YYYY-MM-DD
    views: int = 0
    clicks: int = 0
    atbs: int = 0  # добавления в корзину
    orders: int = 0
    sum: float = 0  # расход в валюте кабинета, как пришёл из API
    currency_symbol: str = "₽"

    @property
    def clicks_cart(self) -> str:
        return percent(self.atbs, self.clicks)

    @property
    def cart_order(self) -> str:
        return percent(self.orders, self.atbs)

    @property
    def revenue(self) -> str:
        return f"{self.currency_symbol}{self.sum}"
