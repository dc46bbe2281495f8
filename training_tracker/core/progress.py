# core/progress.py

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List

from .models import Section, Task
from .overlay import ConfirmationState

TABS = ("all", "pending", "completed")


def _percentage(done: int, total: int) -> int:
    if total <= 0:
        return 0
    # half-up, matches the dashboard's rounding
    return int(done * 100 / total + 0.5)


def compute_progress(tasks: Iterable[Task]) -> Dict[str, int]:
    """Overall completion for tasks with the overlay already applied"""
    task_list = list(tasks)
    total = len(task_list)
    completed = sum(1 for task in task_list if task.confirmed)
    return {
        "total": total,
        "completed": completed,
        "percentage": _percentage(completed, total),
    }


def section_progress(sections: List[Section]) -> List[Dict[str, Any]]:
    """Per-section done/total counters for the navigation sidebar"""
    result = []
    for index, section in enumerate(sections):
        done = sum(1 for task in section.tasks if task.confirmed)
        result.append({
            "index": index,
            "title": section.title,
            "total": len(section.tasks),
            "done": done,
            "percentage": _percentage(done, len(section.tasks)),
        })
    return result


def filter_sections(sections: List[Section], query: str = "", tab: str = "all") -> List[Section]:
    """
    Search and tab filtering over merged sections.

    Matches the query case-insensitively against content and category and
    drops sections left without tasks.
    """
    if tab not in TABS:
        raise ValueError(f"tab must be one of {TABS}")
    needle = (query or "").lower()

    filtered: List[Section] = []
    for section in sections:
        tasks = []
        for task in section.tasks:
            if needle and needle not in task.content.lower() and needle not in task.category.lower():
                continue
            if tab == "completed" and not task.confirmed:
                continue
            if tab == "pending" and task.confirmed:
                continue
            tasks.append(task)
        if tasks:
            filtered.append(Section(title=section.title, tasks=tasks))
    return filtered


def activity_by_day(overlay: ConfirmationState) -> List[Dict[str, Any]]:
    """Confirmations per calendar day, oldest first"""
    counts: Dict[str, int] = defaultdict(int)
    for entry in overlay.values():
        if not entry.get("confirmed"):
            continue
        date = entry.get("date")
        if not date:
            continue
        try:
            day = datetime.fromisoformat(str(date).replace("Z", "+00:00")).date()
        except ValueError:
            continue
        counts[day.isoformat()] += 1
    return [{"date": day, "count": counts[day]} for day in sorted(counts)]


def activity_level(count: int) -> int:
    """Heatmap intensity bucket 0..4"""
    if count <= 0:
        return 0
    if count <= 1:
        return 1
    if count <= 3:
        return 2
    if count <= 5:
        return 3
    return 4
