"""Task data model, parsing core, confirmation overlay and progress statistics"""

from .models import DEFAULT_CATEGORY, RawTaskRow, Section, Task, cell_to_str, flatten_tasks
from .data_parser import (
    CSV_COLUMNS,
    DATA_START_ROW,
    export_csv,
    parse_csv,
    parse_spreadsheet_rows,
    parse_spreadsheet_rows_by_marker,
    tokenize_csv_line,
)
from .overlay import (
    ConfirmationState,
    apply_overlay,
    merge_overlays,
    overlay_from_tasks,
    set_confirmation,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "RawTaskRow",
    "Section",
    "Task",
    "cell_to_str",
    "flatten_tasks",
    "CSV_COLUMNS",
    "DATA_START_ROW",
    "export_csv",
    "parse_csv",
    "parse_spreadsheet_rows",
    "parse_spreadsheet_rows_by_marker",
    "tokenize_csv_line",
    "ConfirmationState",
    "apply_overlay",
    "merge_overlays",
    "overlay_from_tasks",
    "set_confirmation",
]
