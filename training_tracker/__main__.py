"""
Command-line entry point.

Runs the dashboard or converts task data between the spreadsheet row feed,
CSV exports and section JSON.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from .config import TrackerSettings
from .core.data_parser import export_csv, parse_csv
from .core.models import Section, flatten_tasks
from .services.task_source import load_rows_from_file, rows_to_sections


def _dump_sections(sections: List[Section], indent: int) -> str:
    return json.dumps([section.to_dict() for section in sections], ensure_ascii=False, indent=indent)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="training_tracker",
        description="Onboarding training tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m training_tracker serve --port 8000
  python -m training_tracker parse tasks.json --indent 4
  python -m training_tracker export-csv tasks.json > progress.csv
  python -m training_tracker import-csv progress.csv
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the web dashboard")
    serve.add_argument("--host", type=str, default=None, help="Bind host (default: DASHBOARD_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: DASHBOARD_PORT)")
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    parse = subparsers.add_parser("parse", help="Parse a spreadsheet row feed and print sections as JSON")
    parse.add_argument("rows_file", type=str, help="JSON list of {row, cells}")

    export = subparsers.add_parser("export-csv", help="Parse a spreadsheet row feed and print it as CSV")
    export.add_argument("rows_file", type=str, help="JSON list of {row, cells}")

    import_csv = subparsers.add_parser("import-csv", help="Parse a CSV export and print sections as JSON")
    import_csv.add_argument("csv_file", type=str, help="CSV file produced by export-csv or the dashboard")

    for sub in (parse, import_csv):
        sub.add_argument("--indent", type=int, default=2, help="JSON indentation level (default: 2)")
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = TrackerSettings()

    try:
        if args.command == "serve":
            uvicorn.run(
                "training_tracker.dashboard.app:create_app",
                factory=True,
                host=args.host or settings.DASHBOARD_HOST,
                port=args.port or settings.DASHBOARD_PORT,
                reload=args.reload,
                log_level=settings.LOG_LEVEL.lower(),
                server_header=False,
            )
        elif args.command == "parse":
            sections = rows_to_sections(load_rows_from_file(args.rows_file), settings)
            print(_dump_sections(sections, args.indent))
        elif args.command == "export-csv":
            sections = rows_to_sections(load_rows_from_file(args.rows_file), settings)
            print(export_csv(flatten_tasks(sections)))
        elif args.command == "import-csv":
            text = Path(args.csv_file).read_text(encoding="utf-8-sig")
            sections = parse_csv(text, default_category=settings.DEFAULT_CATEGORY)
            if not sections:
                raise ValueError("No valid task data found")
            print(_dump_sections(sections, args.indent))
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
