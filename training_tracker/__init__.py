"""Onboarding training tracker: task-data parsing, progress overlay and dashboard"""

from .core.data_parser import export_csv, parse_csv, parse_spreadsheet_rows, tokenize_csv_line
from .core.models import RawTaskRow, Section, Task

__version__ = "1.0.0"

__all__ = [
    "RawTaskRow",
    "Section",
    "Task",
    "export_csv",
    "parse_csv",
    "parse_spreadsheet_rows",
    "tokenize_csv_line",
    "__version__",
]
