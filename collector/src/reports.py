"""Скачивание отчётов nm-report.

Каждый отчёт — ZIP-архив с CSV внутри. Из архива берётся первый файл *.csv,
текст сохраняется как <id>.csv.
"""

from __future__ import annotations

import io
import logging
import zipfile
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from src.errors import RateLimited, UpstreamError
from src.models import ReportDescriptor
from src.retry import RetryPolicy, call_with_retry
from src.wb_api import WBClient

logger = logging.getLogger(__name__)


def extract_csv(data: bytes) -> str:
    """Достаёт текст первого *.csv из ZIP-архива.

    Returns:
        CSV-текст. Если архив пустой или CSV в нём нет — "".

    Raises:
        UpstreamError: payload не является ZIP-архивом
    """
    if not data:
        return ""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            for name in zf.namelist():
                if name.lower().endswith(".csv"):
                    return zf.read(name).decode("utf-8-sig")
    except zipfile.BadZipFile as e:
        raise UpstreamError(None, f"некорректный архив: {e}") from e
    return ""


def fetch_report(client: WBClient, download_id: str, policy: RetryPolicy | None = None) -> ReportDescriptor:
    """Скачивает и распаковывает один отчёт.

    На 429 ждёт и повторяет по policy, остальные ошибки не повторяются.
    """
    policy = policy or RetryPolicy(
        max_retries=client.settings.retry_max,
        delay=client.settings.retry_delay,
        retry_on=(RateLimited,),
    )
    data = call_with_retry(
        lambda: client.download_report(download_id),
        policy,
        f"Отчёт {download_id}",
    )
    payload = extract_csv(data)
    if not payload:
        logger.warning("В отчёте %s нет CSV, сохраняем пустой файл", download_id)
    return ReportDescriptor(id=download_id, payload=payload)


def fetch_reports(
    client: WBClient,
    download_ids: list[str],
    policy: RetryPolicy | None = None,
    max_workers: int = 4,
) -> list[ReportDescriptor]:
    """Скачивает отчёты параллельно.

    Дожидается всех запущенных загрузок. Если хоть одна упала — пробрасывает
    первую ошибку (в порядке download_ids) уже после того, как остальные завершились.
    """
    if not download_ids:
        return []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [pool.submit(fetch_report, client, rid, policy) for rid in download_ids]
        wait(futures)

    for rid, fut in zip(download_ids, futures):
        exc = fut.exception()
        if exc is not None:
            logger.error("Не удалось получить отчёт %s: %s", rid, exc)
            raise exc
    return [fut.result() for fut in futures]


def save_report(report: ReportDescriptor, output_dir: Path) -> Path:
    """Пишет CSV отчёта в <output_dir>/<id>.csv."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / report.filename
    path.write_text(report.payload, encoding="utf-8")
    logger.info("CSV файл записан как %s", path)
    return path
