"""Иерархия ошибок коллектора."""

from __future__ import annotations


class CollectorError(Exception):
    """Базовая ошибка коллектора."""


class ConfigError(CollectorError):
    """Не хватает обязательных настроек."""


class RateLimited(CollectorError):
    """API вернул 429 (превышен лимит запросов)."""


class NoData(CollectorError):
    """API вернул 204 — данных нет. Вызывающий код превращает это в пустой результат."""


class UpstreamError(CollectorError):
    """API вернул ошибочный статус (кроме 204 и 429)."""

    def __init__(self, status: int | None, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"status={status} body={body[:200]}")


class NetworkError(CollectorError):
    """Ошибка транспорта: таймаут, обрыв соединения и т.п."""


class MissingColumns(CollectorError):
    """В строке заголовков нет обязательных колонок."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Не найдены колонки: {', '.join(missing)}")


class RetryExhausted(CollectorError):
    """Повторы закончились, а запрос так и не прошёл."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Превышено количество попыток ({attempts})")
