# services/task_source.py

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import gspread

from ..config import TrackerSettings
from ..core.data_parser import parse_spreadsheet_rows, parse_spreadsheet_rows_by_marker
from ..core.models import RawTaskRow, Section

logger = logging.getLogger(__name__)


def load_rows_from_file(path: Union[str, Path]) -> List[RawTaskRow]:
    """Read the bundled [{row, cells}] spreadsheet export"""
    with open(path, "r", encoding="utf-8-sig") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of rows")
    rows: List[RawTaskRow] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            rows.append(RawTaskRow.from_dict(item))
        except (TypeError, ValueError) as e:
            logger.warning(f"⚠️ Skipping malformed row {item!r}: {e}")
    return rows


def fetch_sheet_rows(sheet_id: str, credentials_file: str, worksheet: str) -> List[RawTaskRow]:
    """Read every row of a live Google Sheet, row numbers 1-based"""
    client = gspread.service_account(filename=credentials_file)
    sheet = client.open_by_key(sheet_id).worksheet(worksheet)
    values = sheet.get_all_values()
    return [RawTaskRow(row=index, cells=list(cells)) for index, cells in enumerate(values, start=1)]


def load_meta(path: Union[str, Path]) -> Dict[str, Any]:
    meta_path = Path(path)
    if not meta_path.exists():
        return {}
    try:
        with open(meta_path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"⚠️ Metadata file {meta_path} unreadable: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def rows_to_sections(rows: List[RawTaskRow], settings: TrackerSettings) -> List[Section]:
    if settings.PARSER_STRATEGY == "marker":
        return parse_spreadsheet_rows_by_marker(rows, default_category=settings.DEFAULT_CATEGORY)
    return parse_spreadsheet_rows(
        rows,
        start_row=settings.DATA_START_ROW,
        default_category=settings.DEFAULT_CATEGORY,
    )


def load_sections(settings: TrackerSettings) -> List[Section]:
    """
    Startup task data: the live sheet when configured, else the bundled file.

    A failing sheet falls back to the bundled file.
    """
    rows: List[RawTaskRow] = []
    if settings.google_enabled:
        try:
            rows = fetch_sheet_rows(
                settings.GOOGLE_SHEET_ID,
                settings.GOOGLE_CREDENTIALS_FILE,
                settings.GOOGLE_WORKSHEET,
            )
            logger.info(f"📥 Loaded {len(rows)} rows from Google Sheets")
        except Exception as e:
            logger.error(f"❌ Google Sheets unavailable, using bundled data: {e}")
            rows = []

    if not rows:
        rows = load_rows_from_file(settings.TASKS_FILE)
        logger.info(f"📥 Loaded {len(rows)} rows from {settings.TASKS_FILE}")

    sections = rows_to_sections(rows, settings)
    logger.info(f"📝 Parsed {len(sections)} sections, {sum(len(s.tasks) for s in sections)} tasks")
    return sections
