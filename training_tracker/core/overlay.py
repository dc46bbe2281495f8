# core/overlay.py

"""
Confirmation overlay: {task_id: {"confirmed", "date", "updatedAt"}}.

The overlay is stored and owned apart from parsed sections and is only
merged on top of them when rendering or exporting.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .models import Section, Task

ConfirmationState = Dict[str, Dict[str, Any]]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def entry_timestamp(entry: Optional[Dict[str, Any]]) -> Optional[datetime]:
    """Write time of an overlay entry: updatedAt, else the completion date"""
    if not entry:
        return None
    return _parse_timestamp(entry.get("updatedAt")) or _parse_timestamp(entry.get("date"))


def set_confirmation(
    overlay: ConfirmationState,
    task_id: str,
    confirmed: bool,
    now: Optional[str] = None,
) -> ConfirmationState:
    """Return a new overlay with one task's confirmation replaced"""
    stamp = now or _now_iso()
    updated = dict(overlay)
    updated[task_id] = {
        "confirmed": bool(confirmed),
        "date": stamp if confirmed else "",
        "updatedAt": stamp,
    }
    return updated


def apply_overlay(sections: List[Section], overlay: ConfirmationState) -> List[Section]:
    """Copy sections with confirmation state merged onto every task"""
    merged: List[Section] = []
    for section in sections:
        tasks: List[Task] = []
        for task in section.tasks:
            entry = overlay.get(task.id) or {}
            confirmed = bool(entry.get("confirmed", False))
            date = entry.get("date") or None
            tasks.append(replace(
                task,
                confirmed=confirmed,
                completion_date=date if confirmed else None,
            ))
        merged.append(Section(title=section.title, tasks=tasks))
    return merged


def overlay_from_tasks(tasks: Iterable[Any], now: Optional[str] = None) -> ConfirmationState:
    """
    Rebuild an overlay from exported task records.

    Accepts Task objects or JSON dicts; only confirmed tasks are kept and a
    missing completion date becomes the import time.
    """
    stamp = now or _now_iso()
    overlay: ConfirmationState = {}
    for item in tasks:
        if isinstance(item, Task):
            task_id, confirmed, date = item.id, item.confirmed, item.completion_date
        else:
            task_id = item.get("id")
            confirmed = item.get("confirmed")
            date = item.get("completionDate") or item.get("completion_date")
        if not task_id or confirmed is not True:
            continue
        overlay[str(task_id)] = {
            "confirmed": True,
            "date": date or stamp,
            "updatedAt": stamp,
        }
    return overlay


def merge_overlays(base: ConfirmationState, incoming: ConfirmationState) -> ConfirmationState:
    """
    Per-task last-write-wins merge.

    The entry with the later timestamp wins and an entry without a
    timestamp counts as the oldest; ties go to the incoming entry. Ids
    present on one side only are kept as they are.
    """
    merged: ConfirmationState = dict(base)
    for task_id, entry in incoming.items():
        current = merged.get(task_id)
        if current is None:
            merged[task_id] = entry
            continue
        current_ts = entry_timestamp(current)
        incoming_ts = entry_timestamp(entry)
        if current_ts is not None and (incoming_ts is None or incoming_ts < current_ts):
            continue
        merged[task_id] = entry
    return merged


def confirmed_ids(overlay: ConfirmationState) -> List[str]:
    return [task_id for task_id, entry in overlay.items() if entry.get("confirmed")]
