import pytest

from training_tracker.core.models import Section, Task
from training_tracker.core.progress import (
    activity_by_day,
    activity_level,
    compute_progress,
    filter_sections,
    section_progress,
)


def make_sections():
    return [
        Section("Intro", [
            Task("t1", "Intro", "Culture", "Company history", confirmed=True),
            Task("t2", "Intro", "Rules", "Attendance policy"),
        ]),
        Section("Skills", [
            Task("t3", "Skills", "Product", "Pricing rules"),
        ]),
    ]


def test_compute_progress():
    tasks = [task for section in make_sections() for task in section.tasks]
    assert compute_progress(tasks) == {"total": 3, "completed": 1, "percentage": 33}


def test_compute_progress_empty():
    assert compute_progress([]) == {"total": 0, "completed": 0, "percentage": 0}


def test_percentage_rounds_half_up():
    tasks = [Task(str(i), "S", "C", "x", confirmed=i < 1) for i in range(8)]
    # 1/8 = 12.5%
    assert compute_progress(tasks)["percentage"] == 13


def test_section_progress():
    result = section_progress(make_sections())
    assert result == [
        {"index": 0, "title": "Intro", "total": 2, "done": 1, "percentage": 50},
        {"index": 1, "title": "Skills", "total": 1, "done": 0, "percentage": 0},
    ]


@pytest.mark.parametrize("query, tab, expected", [
    ("", "all", ["t1", "t2", "t3"]),
    ("", "completed", ["t1"]),
    ("", "pending", ["t2", "t3"]),
    ("PRICING", "all", ["t3"]),
    ("rules", "all", ["t2", "t3"]),
    ("history", "pending", []),
])
def test_filter_sections(query, tab, expected):
    result = filter_sections(make_sections(), query, tab)
    assert [task.id for section in result for task in section.tasks] == expected
    assert all(section.tasks for section in result)


def test_filter_sections_rejects_unknown_tab():
    with pytest.raises(ValueError):
        filter_sections(make_sections(), "", "archived")


def test_activity_by_day():
    overlay = {
        "t1": {"confirmed": True, "date": "2025-03-02T09:00:00+00:00"},
        "t2": {"confirmed": True, "date": "2025-03-01T10:00:00Z"},
        "t3": {"confirmed": True, "date": "2025-03-02T18:30:00+00:00"},
        "t4": {"confirmed": False, "date": ""},
        "t5": {"confirmed": True, "date": "not a date"},
    }
    assert activity_by_day(overlay) == [
        {"date": "2025-03-01", "count": 1},
        {"date": "2025-03-02", "count": 2},
    ]


@pytest.mark.parametrize("count, level", [(0, 0), (1, 1), (2, 2), (3, 2), (5, 3), (9, 4)])
def test_activity_level(count, level):
    assert activity_level(count) == level
