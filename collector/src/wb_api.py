"""Клиент WB API (аналитика nm-report и рекламный кабинет).

Коды ответа переводятся в исключения из src.errors:
  429 → RateLimited, 204 → NoData, прочие не-2xx → UpstreamError,
  ошибки транспорта → NetworkError.
"""

from __future__ import annotations

import logging

import requests

from src.config import ACTIVE_CAMPAIGN_STATUS, REQUEST_TIMEOUT, Settings
from src.errors import NetworkError, NoData, RateLimited, UpstreamError
from src.models import CampaignStat, normalize_id
from src.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

REPORTS_LIST_PATH = "api/v2/nm-report/downloads"
REPORT_FILE_PATH = "api/v2/nm-report/downloads/file/{download_id}"
ADVERTS_PATH = "adv/v1/promotion/adverts"
FULLSTATS_PATH = "adv/v2/fullstats"


def _join(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def _to_int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class WBClient:
    """Тонкая обёртка над requests.Session с токеном в заголовке Authorization."""

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
        stats_policy: RetryPolicy | None = None,
    ):
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": settings.api_token,
            "Content-Type": "application/json",
        })
        # ежедневный запуск: 429 и сетевые ошибки повторяем с длинной паузой
        self.stats_policy = stats_policy or RetryPolicy(
            max_retries=settings.retry_max,
            delay=settings.retry_delay,
            retry_on=(RateLimited, NetworkError),
        )

    def _json(self, resp: requests.Response):
        """Тело ответа как JSON. Не-JSON тело считается ошибкой API."""
        try:
            return resp.json()
        except ValueError as e:
            logger.error("Ответ не JSON: %d %s", resp.status_code, resp.text[:500])
            raise UpstreamError(resp.status_code, resp.text) from e

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            resp = self.session.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            logger.error("Ошибка сети: %s %s: %s", method, url, e)
            raise NetworkError(str(e)) from e

        if resp.status_code == 429:
            raise RateLimited(url)
        if resp.status_code == 204:
            raise NoData(url)
        if not resp.ok:
            logger.error("Ошибка при запросе %s %s: %d %s", method, url, resp.status_code, resp.text[:500])
            raise UpstreamError(resp.status_code, resp.text)
        return resp

    # --- nm-report ---

    def list_report_ids(self) -> list[str]:
        """Возвращает id готовых к скачиванию отчётов. 204 → []."""
        url = _join(self.settings.api_url, REPORTS_LIST_PATH)
        try:
            resp = self._request("GET", url)
        except NoData:
            logger.info("Готовых отчётов нет.")
            return []
        payload = self._json(resp)
        if not isinstance(payload, dict):
            raise UpstreamError(resp.status_code, f"неожиданный формат ответа: {type(payload).__name__}")
        reports = payload.get("data") or []
        return [
            normalize_id(r["id"]) for r in reports
            if isinstance(r, dict) and r.get("id") is not None
        ]

    def download_report(self, download_id: str) -> bytes:
        """Скачивает архив отчёта. Одна попытка, повторы делает вызывающий."""
        url = _join(self.settings.api_url, REPORT_FILE_PATH.format(download_id=download_id))
        try:
            return self._request("GET", url).content
        except NoData:
            return b""

    # --- рекламный кабинет ---

    def list_active_campaigns(self) -> list[str]:
        """Возвращает id активных кампаний. 204 означает «кампаний нет»."""
        return call_with_retry(self._list_active_campaigns, self.stats_policy, "Список кампаний")

    def _list_active_campaigns(self) -> list[str]:
        url = _join(self.settings.api_url_companies, ADVERTS_PATH)
        try:
            resp = self._request("POST", url, params={"status": ACTIVE_CAMPAIGN_STATUS})
        except NoData:
            logger.info("Кампании не найдены.")
            return []
        data = self._json(resp)
        if not isinstance(data, list):
            return []
        return [
            normalize_id(c["advertId"]) for c in data
            if isinstance(c, dict) and c.get("advertId") is not None
        ]

    def fetch_statistics(self, campaign_ids: list[str], date: str) -> list[CampaignStat]:
        """Запрашивает статистику за день date (YYYY-MM-DD) одним POST по всем кампаниям.

        204 означает «нет данных» и даёт пустой список.
        """
        if not campaign_ids:
            return []
        return call_with_retry(
            lambda: self._fetch_statistics(campaign_ids, date),
            self.stats_policy,
            "Статистика кампаний",
        )

    def _fetch_statistics(self, campaign_ids: list[str], date: str) -> list[CampaignStat]:
        url = _join(self.settings.api_url_companies, FULLSTATS_PATH)
        body = [{"id": _to_int(cid), "dates": [date]} for cid in campaign_ids]
        try:
            resp = self._request("POST", url, json=body)
        except NoData:
            logger.info("Нет данных по кампаниям за %s.", date)
            return []

        data = self._json(resp)
        if not isinstance(data, list):
            return []
        return [
            CampaignStat(
                campaign_id=normalize_id(item.get("advertId")),
                date=date,
                views=_to_int(item.get("views")),
                clicks=_to_int(item.get("clicks")),
                atbs=_to_int(item.get("atbs")),
                orders=_to_int(item.get("orders")),
                sum=item.get("sum") or 0,
                currency_symbol=self.settings.currency_symbol,
            )
            for item in data
            if isinstance(item, dict) and item.get("advertId") is not None
        ]
