"""Google Sheets: чтение заголовков, поиск колонок и запись статистики.

Номера колонок везде 1-based, как в адресации таблиц.
Для индексации строк в памяти вычитаем 1.
"""

from __future__ import annotations

import json
import logging
import os
import re

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

from src.config import SHEETS_SCOPES, Settings
from src.errors import ConfigError, MissingColumns
from src.models import CampaignStat, normalize_id

logger = logging.getLogger(__name__)


def get_service(settings: Settings):
    """Создаёт клиент Sheets API v4 по сервисному аккаунту.

    GOOGLE_SERVICE_ACCOUNT_JSON (JSON строкой) важнее файла credentials.
    """
    if settings.service_account_json:
        info = json.loads(settings.service_account_json)
        creds = Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
    else:
        if not os.path.exists(settings.credentials_file):
            raise ConfigError(f"Не найден файл ключа сервисного аккаунта: {settings.credentials_file}")
        creds = Credentials.from_service_account_file(settings.credentials_file, scopes=SHEETS_SCOPES)
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def column_number(letters: str) -> int:
    """Буквы колонки в номер: A → 1, Z → 26, AA → 27."""
    n = 0
    for ch in letters.upper():
        n = n * 26 + ord(ch) - ord("A") + 1
    return n


def range_last_column(a1_range: str) -> int | None:
    """Номер последней колонки диапазона ("A:Z" → 26). Для диапазонов строк ("1:100") None."""
    end = a1_range.split("!")[-1].split(":")[-1]
    m = re.match(r"\$?([A-Za-z]+)", end)
    return column_number(m.group(1)) if m else None


def _a1(sheet_name: str, a1_range: str) -> str:
    safe = sheet_name.replace("'", "''")
    return f"'{safe}'!{a1_range}"


def resolve_columns(
    header: list,
    required: list[str],
    date_name: str | None = None,
    optional: list[str] = (),
) -> dict[str, int]:
    """Находит номера колонок по точному совпадению заголовка.

    Если колонки date_name нет, она дописывается в конец header (список меняется
    на месте) и получает крайний правый номер.

    Args:
        header: строка заголовков
        required: обязательные колонки
        date_name: колонка за дату, создаётся при отсутствии
        optional: колонки, которые берутся только если есть

    Returns:
        {имя: номер колонки, 1-based}

    Raises:
        MissingColumns: не найдена обязательная колонка (кроме date_name)
    """
    cells = ["" if c is None else str(c) for c in header]

    missing = [name for name in required if name not in cells]
    if missing:
        raise MissingColumns(missing)

    columns = {name: cells.index(name) + 1 for name in required}
    for name in optional:
        if name in cells:
            columns[name] = cells.index(name) + 1

    if date_name is not None:
        if date_name in cells:
            columns[date_name] = cells.index(date_name) + 1
        else:
            header.append(date_name)
            columns[date_name] = len(header)
            logger.info("Добавлена колонка даты %s (№%d)", date_name, len(header))
    return columns


def reconcile(
    stats: list[CampaignStat],
    grid: list[list],
    columns: dict[str, int],
    id_column: str,
    field_columns: dict[str, str],
    header_row: int = 1,
) -> list[list]:
    """Переносит статистику в строки таблицы по id кампании.

    Для каждой записи ищется первая строка ниже заголовка, у которой id совпадает
    (после normalize_id). В ней перезаписываются колонки из field_columns.
    Записи без строки пропускаются: новые строки не добавляются.

    Args:
        stats: статистика за день
        grid: все строки листа, меняются на месте
        columns: результат resolve_columns
        id_column: имя колонки с id кампании
        field_columns: {атрибут CampaignStat: имя колонки}; колонки,
            которых нет в columns, пропускаются
        header_row: номер строки заголовков (1-based)

    Returns:
        тот же grid
    """
    id_idx = columns[id_column] - 1
    targets = [
        (attr, columns[name] - 1)
        for attr, name in field_columns.items()
        if name in columns
    ]

    matched = 0
    for stat in stats:
        row = _find_row(grid, id_idx, stat.campaign_id, start=header_row)
        if row is None:
            logger.info("Кампания %s не найдена в таблице, пропуск", stat.campaign_id)
            continue
        for attr, idx in targets:
            if len(row) <= idx:
                row.extend([""] * (idx + 1 - len(row)))
            row[idx] = getattr(stat, attr)
        matched += 1

    logger.info("Обновлено строк: %d из %d", matched, len(stats))
    return grid


def _find_row(grid: list[list], id_idx: int, campaign_id: str, start: int) -> list | None:
    wanted = normalize_id(campaign_id)
    for row in grid[start:]:
        if len(row) > id_idx and normalize_id(row[id_idx]) == wanted:
            return row
    return None


class SheetClient:
    """Операции над одним листом таблицы."""

    def __init__(self, settings: Settings, service=None):
        self.settings = settings
        self.service = service or get_service(settings)

    def _values(self):
        return self.service.spreadsheets().values()

    def get_values(self, a1_range: str) -> list[list]:
        resp = self._values().get(
            spreadsheetId=self.settings.sheet_id,
            range=_a1(self.settings.sheet_name, a1_range),
        ).execute()
        return resp.get("values", [])

    def update_values(self, a1_range: str, values: list[list]) -> None:
        self._values().update(
            spreadsheetId=self.settings.sheet_id,
            range=_a1(self.settings.sheet_name, a1_range),
            valueInputOption="RAW",
            body={"values": values},
        ).execute()

    def resolve_columns(
        self,
        required: list[str],
        date_name: str | None = None,
        optional: list[str] = (),
    ) -> dict[str, int]:
        """Читает строку заголовков и находит колонки.

        Если пришлось добавить колонку даты, строка заголовков записывается обратно.
        Колонки правее DATA_RANGE дают ConfigError, до записи заголовка.
        """
        n = self.settings.header_row
        rows = self.get_values(f"{n}:{n}")
        header = rows[0] if rows else []
        width = len(header)
        columns = resolve_columns(header, required, date_name, optional)
        last = range_last_column(self.settings.data_range)
        if columns and last is not None and max(columns.values()) > last:
            raise ConfigError(
                f"Колонка №{max(columns.values())} не входит в DATA_RANGE={self.settings.data_range}"
            )
        if len(header) != width:
            self.update_values(f"{n}:{n}", [header])
        return columns

    def read_grid(self) -> list[list]:
        return self.get_values(self.settings.data_range)

    def write_grid(self, grid: list[list]) -> None:
        """Записывает все строки одним update."""
        self.update_values(self.settings.data_range, grid)
        logger.info("Таблица обновлена: %d строк", len(grid))
