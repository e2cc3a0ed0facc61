"""Сбор статистики WB — главная точка входа.

Конвейеры:
  stats:
    1. Получить id активных кампаний
    2. Запросить статистику за вчера одним запросом
    3. Найти колонки в строке заголовков (колонку даты создать при отсутствии)
    4. Перенести статистику в строки по id кампании и записать лист целиком
  reports:
    1. Получить список готовых отчётов nm-report
    2. Скачать все отчёты параллельно
    3. Сохранить CSV из каждого архива как <id>.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import date, datetime, timedelta

from src.config import LOG_DIR, Settings
from src.errors import CollectorError
from src.reports import fetch_reports, save_report
from src.sheets import SheetClient, reconcile
from src.wb_api import WBClient

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Начальная настройка логирования."""
    log_file = LOG_DIR / f"collector_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def yesterday() -> date:
    return date.today() - timedelta(days=1)


def run_stats(
    settings: Settings,
    day: date | None = None,
    client: WBClient | None = None,
    sheet: SheetClient | None = None,
) -> int:
    """Статистика кампаний → Google Sheets.

    Returns:
        количество записей статистики
    """
    day = day or yesterday()
    client = client or WBClient(settings)
    logger.info("=== Статистика кампаний за %s: старт ===", day.isoformat())
    start_time = time.time()

    campaign_ids = client.list_active_campaigns()
    if not campaign_ids:
        logger.warning("Активных кампаний нет. Завершаем.")
        return 0
    logger.info("Активных кампаний: %d", len(campaign_ids))

    stats = client.fetch_statistics(campaign_ids, day.isoformat())
    logger.info("Получено записей статистики: %d", len(stats))
    if not stats:
        return 0

    sheet = sheet or SheetClient(settings)
    date_name = day.strftime(settings.date_header_format)
    columns = sheet.resolve_columns(
        required=[settings.col_campaign_id, settings.col_views, settings.col_clicks],
        date_name=date_name,
        optional=[settings.col_clicks_cart, settings.col_cart_order],
    )

    grid = sheet.read_grid()
    reconcile(
        stats,
        grid,
        columns,
        id_column=settings.col_campaign_id,
        field_columns={
            "views": settings.col_views,
            "clicks": settings.col_clicks,
            "clicks_cart": settings.col_clicks_cart,
            "cart_order": settings.col_cart_order,
            "revenue": date_name,
        },
        header_row=settings.header_row,
    )
    sheet.write_grid(grid)

    logger.info("=== Статистика кампаний: готово за %.1f с ===", time.time() - start_time)
    return len(stats)


def run_reports(settings: Settings, client: WBClient | None = None) -> int:
    """Отчёты nm-report → <id>.csv.

    Returns:
        количество сохранённых файлов
    """
    client = client or WBClient(settings)
    logger.info("=== Отчёты nm-report: старт ===")
    start_time = time.time()

    download_ids = client.list_report_ids()
    logger.info("Готовых отчётов: %d", len(download_ids))

    reports = fetch_reports(client, download_ids, max_workers=settings.report_workers)
    for report in reports:
        save_report(report, settings.reports_dir)

    logger.info("=== Отчёты nm-report: готово за %.1f с ===", time.time() - start_time)
    return len(reports)


def run_once(pipeline: str, settings: Settings, day: date | None = None) -> bool:
    """Один запуск конвейера.

    Любая ошибка запуска логируется и не пробрасывается, чтобы цикл
    run_forever дошёл до следующего запуска.
    """
    try:
        if pipeline == "stats":
            run_stats(settings, day)
        else:
            run_reports(settings)
    except Exception:
        logger.exception("Ошибка при выполнении %s", pipeline)
        return False
    return True


def run_forever(pipeline: str, settings: Settings, interval: float, sleep=time.sleep, max_runs: int | None = None) -> None:
    """Запускает конвейер каждые interval секунд.

    Упавший запуск не останавливает цикл: следующий стартует по расписанию.
    Наложение запусков не отслеживается.
    """
    runs = 0
    while max_runs is None or runs < max_runs:
        started = time.monotonic()
        logger.info("Запуск задачи %s", pipeline)
        run_once(pipeline, settings)
        runs += 1
        if max_runs is not None and runs >= max_runs:
            break
        sleep(max(0.0, interval - (time.monotonic() - started)))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Сбор статистики WB в Google Sheets")
    parser.add_argument("pipeline", choices=["stats", "reports"])
    parser.add_argument("--date", type=date.fromisoformat, default=None,
                        help="день статистики YYYY-MM-DD (по умолчанию вчера)")
    parser.add_argument("--loop", action="store_true", help="запускать по расписанию")
    parser.add_argument("--interval", type=float, default=None,
                        help="интервал в секундах (по умолчанию RUN_INTERVAL_SECONDS)")
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    """Главная функция."""
    args = parse_args(argv)
    setup_logging()
    try:
        settings = Settings.from_env(require_sheet=args.pipeline == "stats")
    except CollectorError as e:
        logger.error("Ошибка конфигурации: %s", e)
        return 1

    if args.loop:
        run_forever(args.pipeline, settings, args.interval or settings.run_interval)
        return 0
    return 0 if run_once(args.pipeline, settings, args.date) else 1


if __name__ == "__main__":
    raise SystemExit(run())
