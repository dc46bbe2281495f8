#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Training Tracker - Task Data Parser
Normalizes spreadsheet row feeds and CSV exports into sections and tasks

Both input paths produce the same Section/Task shape. Parsing is pure:
every call builds fresh objects and keeps its "current section/category"
state local to the call. Malformed rows and lines are skipped, never raised.
"""

import csv
import io
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .models import DEFAULT_CATEGORY, RawTaskRow, Section, Task

logger = logging.getLogger(__name__)

# ===== SPREADSHEET LAYOUT =====

DATA_START_ROW = 9

COL_SECTION = 1
COL_CATEGORY = 3
COL_CONTENT = 4
COL_FORM = 6
COL_MENTOR = 7
COL_DEADLINE = 9
COL_STATUS = 10
COL_SCORE = 14

# Historical layout, sections detected by marker words
MARKER_COL_CATEGORY = 2
MARKER_COL_CONTENT = 3
MARKER_COL_FORM = 4
MARKER_COL_MENTOR = 5
MARKER_MIN_CELLS = 5
SECTION_MARKERS = ("版块", "阶段")
HEADER_CONTENTS = ("培训内容", "项目")

# ===== CSV LAYOUT =====

CSV_COLUMNS = [
    "ID",
    "Section",
    "Category",
    "Content",
    "Form",
    "Mentor",
    "Deadline",
    "Status",
    "Score",
    "Confirmed",
    "CompletionDate",
]
CSV_HEADER_MARKERS = ("section", "版块")
CSV_MIN_FIELDS = 3

_LINE_BREAK = re.compile(r"\r?\n")

RowLike = Union[RawTaskRow, Dict[str, Any]]


class _SectionAccumulator:
    """Section/category carry-over state for a single parse call"""

    def __init__(self, default_category: str):
        self.default_category = default_category
        self.sections: List[Section] = []
        self.current: Optional[Section] = None
        self.category = ""

    def observe(self, title: str, category: str) -> None:
        if title and (self.current is None or title != self.current.title):
            if self.current is not None:
                self.sections.append(self.current)
            self.current = Section(title=title, tasks=[])
            self.category = ""
        if category:
            self.category = category

    def open_section(self, title: str) -> None:
        """Unconditionally start a new section (marker layout)"""
        if self.current is not None:
            self.sections.append(self.current)
        self.current = Section(title=title, tasks=[])
        self.category = ""

    @property
    def task_category(self) -> str:
        return self.category or self.default_category

    def finish(self) -> List[Section]:
        if self.current is not None:
            self.sections.append(self.current)
            self.current = None
        return self.sections


def _coerce_row(entry: RowLike) -> Optional[RawTaskRow]:
    """Row entry as RawTaskRow, or None when it has no usable row number"""
    if isinstance(entry, RawTaskRow):
        return entry
    if not isinstance(entry, dict):
        return None
    try:
        return RawTaskRow.from_dict(entry)
    except (TypeError, ValueError):
        return None


def _normalize_title(value: str) -> str:
    # merged header cells carry line breaks
    return " ".join(part.strip() for part in value.splitlines() if part.strip())


# ===== SPREADSHEET ROWS =====

def parse_spreadsheet_rows(
    rows: Iterable[RowLike],
    start_row: int = DATA_START_ROW,
    default_category: str = DEFAULT_CATEGORY,
) -> List[Section]:
    """
    Convert a spreadsheet row feed into ordered sections.

    Rows numbered below ``start_row`` are ignored. A non-empty section
    cell that differs from the open section's title closes it and opens a
    new one; repeating the same title (merged cells) changes nothing. A
    non-empty category cell updates the carried category even when the row
    emits no task. Rows without content emit no task.
    """
    acc = _SectionAccumulator(default_category)
    skipped = 0

    for entry in rows:
        row = _coerce_row(entry)
        if row is None:
            skipped += 1
            continue
        if row.row < start_row:
            continue

        acc.observe(_normalize_title(row.cell(COL_SECTION)), row.cell(COL_CATEGORY))

        content = row.cell(COL_CONTENT)
        if not content or acc.current is None:
            skipped += 1
            continue

        acc.current.tasks.append(Task(
            id=f"task-{row.row}",
            section=acc.current.title,
            category=acc.task_category,
            content=content,
            form=row.cell(COL_FORM),
            mentor=row.cell(COL_MENTOR),
            deadline=row.cell(COL_DEADLINE),
            status=row.cell(COL_STATUS),
            score=row.cell(COL_SCORE),
            confirmed=False,
        ))

    sections = acc.finish()
    logger.debug(
        "Parsed %d sections / %d tasks from spreadsheet rows (%d rows skipped)",
        len(sections), sum(len(s.tasks) for s in sections), skipped,
    )
    return sections


def parse_spreadsheet_rows_by_marker(
    rows: Iterable[RowLike],
    default_category: str = DEFAULT_CATEGORY,
) -> List[Section]:
    """Historical mapping: sections start at cells containing a marker word"""
    acc = _SectionAccumulator(default_category)

    for entry in rows:
        row = _coerce_row(entry)
        if row is None or len(row.cells) < MARKER_MIN_CELLS:
            continue

        title = row.cell(COL_SECTION)
        if title and any(marker in title for marker in SECTION_MARKERS):
            acc.open_section(_normalize_title(title))

        if acc.current is None:
            continue

        category = row.cell(MARKER_COL_CATEGORY)
        if category:
            acc.category = category

        content = row.cell(MARKER_COL_CONTENT)
        if not content or content in HEADER_CONTENTS:
            continue

        acc.current.tasks.append(Task(
            id=f"row-{row.row}",
            section=acc.current.title,
            category=acc.task_category,
            content=content,
            form=row.cell(MARKER_COL_FORM),
            mentor=row.cell(MARKER_COL_MENTOR),
            deadline=row.cell(COL_DEADLINE),
            status=row.cell(COL_STATUS),
            score=row.cell(COL_SCORE),
            confirmed=False,
        ))

    return acc.finish()


# ===== CSV =====

def _unquote(raw: str) -> str:
    if raw.startswith('"'):
        raw = raw[1:]
    if raw.endswith('"'):
        raw = raw[:-1]
    return raw.replace('""', '"')


def tokenize_csv_line(line: str) -> List[str]:
    """
    Split one CSV line into unquoted fields.

    The scan keeps quote characters in the raw fields and only uses them
    to decide whether a comma separates fields; unquoting happens per
    field afterwards. An unbalanced quote leaves the rest of the line in
    one field.
    """
    raw_fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == "," and not in_quotes:
            raw_fields.append("".join(current))
            current = []
        else:
            current.append(char)
    raw_fields.append("".join(current))

    return [_unquote(field) for field in raw_fields]


def _continues_record(line: str) -> bool:
    # closes the open quoted field, or is too short to be a record of its own
    return line.count('"') % 2 == 1 or len(tokenize_csv_line(line)) < CSV_MIN_FIELDS


def _split_records(text: str) -> List[Tuple[int, str]]:
    """
    Group physical lines into (first line index, record) pairs.

    A line with an open quoted field absorbs following lines that close it
    or are too short to stand alone. A line that is a complete record on
    its own is never absorbed, so a stray quote affects only its own line.
    """
    records: List[Tuple[int, str]] = []
    pending: Optional[Tuple[int, str]] = None

    for index, line in enumerate(_LINE_BREAK.split(text)):
        if pending is not None:
            start, joined = pending
            if _continues_record(line):
                joined = f"{joined}\n{line}"
                if joined.count('"') % 2 == 0:
                    records.append((start, joined))
                    pending = None
                else:
                    pending = (start, joined)
                continue
            records.append(pending)
            pending = None

        if line.count('"') % 2 == 1:
            pending = (index, line)
        else:
            records.append((index, line))

    if pending is not None:
        records.append(pending)
    return records


def _is_header(fields: Sequence[str]) -> bool:
    return any(field.strip().lower() in CSV_HEADER_MARKERS for field in fields)


def parse_csv(text: str, default_category: str = DEFAULT_CATEGORY) -> List[Section]:
    """
    Parse this system's own CSV export back into ordered sections.

    Ids come from the ID column so confirmations stay linked after an
    export/import round trip; an empty ID becomes ``csv-row-<line>``, the
    zero-based physical line the record starts on.
    """
    if not text:
        return []

    records = _split_records(text)
    if records and _is_header(tokenize_csv_line(records[0][1])):
        records = records[1:]
    acc = _SectionAccumulator(default_category)

    for index, record in records:
        if not record.strip():
            continue

        fields = tokenize_csv_line(record)
        if len(fields) < CSV_MIN_FIELDS:
            continue

        def value(column: int) -> str:
            return fields[column] if column < len(fields) else ""

        section = value(1)
        category = value(2)
        acc.observe(section if section.strip() else "", category if category.strip() else "")

        content = value(3)
        if not content.strip() or acc.current is None:
            continue

        acc.current.tasks.append(Task(
            id=value(0) or f"csv-row-{index}",
            section=acc.current.title,
            category=acc.task_category,
            content=content,
            form=value(4),
            mentor=value(5),
            deadline=value(6),
            status=value(7),
            score=value(8),
            confirmed=value(9) == "true",
            completion_date=value(10) or None,
        ))

    sections = acc.finish()
    logger.debug("Parsed %d sections from %d CSV records", len(sections), len(records))
    return sections


def export_csv(tasks: Iterable[Union[Task, Dict[str, Any]]]) -> str:
    """
    Serialize tasks to the fixed 11-column CSV format.

    Every field, header included, is quoted with inner quotes doubled.
    Lines are joined with a single newline; there is no trailing newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for item in tasks:
        task = item if isinstance(item, Task) else Task.from_dict(item)
        writer.writerow([
            task.id,
            task.section,
            task.category,
            task.content,
            task.form,
            task.mentor,
            task.deadline,
            task.status,
            task.score or "",
            "true" if task.confirmed else "false",
            task.completion_date or "",
        ])
    # drop the final line terminator only
    return buffer.getvalue()[:-1]
