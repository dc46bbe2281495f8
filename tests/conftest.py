import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from training_tracker.config import TrackerSettings
from training_tracker.core.models import RawTaskRow, Task


def _row(row: int, section, category, content, form, mentor, deadline, score=None) -> Dict[str, Any]:
    return {
        "row": row,
        "cells": [None, section, None, category, content, None, form, mentor, None, deadline,
                  None, None, None, None, score],
    }


SAMPLE_ROWS: List[Dict[str, Any]] = [
    {"row": 1, "cells": []},
    {"row": 8, "cells": []},
    _row(9, "Section A", "Category 1", "Task 1 Content", "Online", "Mentor A", "2023-12-31", "Score 10"),
    _row(10, "Section A", "Category 1", "Task 2 Content", "Offline", "Mentor B", "2024-01-01"),
    _row(11, "Section B", "Category 2", "Task 3 Content", "Online", "Mentor C", "2024-01-02"),
]


@pytest.fixture
def sample_rows() -> List[RawTaskRow]:
    return [RawTaskRow.from_dict(item) for item in SAMPLE_ROWS]


@pytest.fixture
def sample_tasks() -> List[Task]:
    return [
        Task(
            id="1",
            section="Section A",
            category="Category 1",
            content="Task 1 Content",
            form="Online",
            mentor="Mentor A",
            deadline="2023-12-31",
            status="Pending",
            score="10",
            confirmed=True,
            completion_date="2023-10-01",
        ),
        Task(
            id="2",
            section="Section A",
            category="Category 1",
            content='Task "2" Content with comma,',
            form="Offline",
            mentor="Mentor B",
            deadline="2024-01-01",
            status="Done",
            confirmed=False,
        ),
    ]


@pytest.fixture
def rows_file(tmp_path: Path) -> Path:
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps(SAMPLE_ROWS, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path: Path, rows_file: Path) -> TrackerSettings:
    meta_file = tmp_path / "meta.json"
    meta_file.write_text(json.dumps({"员工": "Test Trainee", "岗位": "Analyst"}, ensure_ascii=False), encoding="utf-8")
    return TrackerSettings(
        ENVIRONMENT="testing",
        DATA_DIR=tmp_path / "data",
        TASKS_FILE=rows_file,
        META_FILE=meta_file,
        LOG_DIR=tmp_path / "logs",
        LOG_TO_FILE=False,
        GOOGLE_SHEET_ID=None,
        DATABASE_URL=None,
    )
