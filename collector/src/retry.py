"""Повтор запросов с фиксированной паузой.

Политика: после ошибки из retry_on ждём delay секунд и пробуем снова,
не более max_retries повторов (max_retries + 1 попыток всего).
Остальные ошибки пробрасываются сразу.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt

from src.config import RETRY_DELAY_SECONDS, RETRY_MAX
from src.errors import RateLimited, RetryExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Параметры повторов. sleep подменяется в тестах."""

    max_retries: int = RETRY_MAX
    delay: Callable[[int], float] | float = RETRY_DELAY_SECONDS
    retry_on: tuple[type[BaseException], ...] = (RateLimited,)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def delay_for(self, retry_number: int) -> float:
        """Пауза перед повтором номер retry_number (1-based)."""
        if callable(self.delay):
            return self.delay(retry_number)
        return self.delay

    def retrying(self, what: str = "запрос") -> Retrying:
        """Собирает tenacity.Retrying по этой политике."""

        def wait(state: RetryCallState) -> float:
            return self.delay_for(state.attempt_number)

        def before_sleep(state: RetryCallState) -> None:
            logger.warning(
                "%s: %s. Повтор через %.0f с, попытка %d из %d",
                what, type(state.outcome.exception()).__name__,
                state.next_action.sleep, state.attempt_number, self.max_retries,
            )

        def exhausted(state: RetryCallState):
            logger.error("%s: превышено количество попыток (%d)", what, state.attempt_number)
            raise RetryExhausted(state.attempt_number) from state.outcome.exception()

        return Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait,
            retry=retry_if_exception_type(self.retry_on),
            sleep=self.sleep,
            before_sleep=before_sleep,
            retry_error_callback=exhausted,
        )


def call_with_retry(fn: Callable[[], T], policy: RetryPolicy, what: str = "запрос") -> T:
    """Вызывает fn, повторяя по policy.

    Raises:
        RetryExhausted: повторы исчерпаны (исходная ошибка в __cause__)
    """
    return policy.retrying(what)(fn)
