#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Training Tracker - Progress Service
Holds parsed sections and the confirmation overlay, and runs import/export
and cloud sync around the parsing core

Overlay mutations are serialized with a lock and the local store is
rewritten after each one (last write wins).
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.data_parser import export_csv, parse_csv
from ..core.models import DEFAULT_CATEGORY, Section, Task, flatten_tasks
from ..core.overlay import (
    ConfirmationState,
    apply_overlay,
    merge_overlays,
    overlay_from_tasks,
    set_confirmation,
)
from ..core.progress import activity_by_day, compute_progress, filter_sections, section_progress
from ..database.stores import KeyValueStore, StoreError

logger = logging.getLogger(__name__)

LOCAL_CONFIRMATIONS_KEY = "training-confirmations"

# ===== EXCEPTIONS =====

class TrackerError(Exception):
    """Base error of the progress service"""
    pass

class TaskNotFoundError(TrackerError):
    """Confirmation for an id that no parsed task has"""
    pass

class ImportFormatError(TrackerError):
    """Imported file holds no usable task data"""
    pass

# ===== SERVICE =====

class ProgressService:
    """Sections plus confirmation overlay for a single user"""

    def __init__(
        self,
        sections: List[Section],
        local_store: KeyValueStore,
        remote_store: Optional[KeyValueStore] = None,
        meta: Optional[Dict[str, Any]] = None,
        default_category: str = DEFAULT_CATEGORY,
    ):
        self._sections = list(sections)
        self.local_store = local_store
        self.remote_store = remote_store
        self.meta = dict(meta or {})
        self.default_category = default_category
        self._lock = threading.RLock()

    # === SECTIONS ===

    @property
    def sections(self) -> List[Section]:
        return list(self._sections)

    def replace_sections(self, sections: List[Section]) -> None:
        with self._lock:
            self._sections = list(sections)

    def task_ids(self) -> List[str]:
        return [task.id for task in flatten_tasks(self._sections)]

    # === OVERLAY ===

    def get_overlay(self) -> ConfirmationState:
        stored = self.local_store.get(LOCAL_CONFIRMATIONS_KEY)
        return dict(stored) if isinstance(stored, dict) else {}

    def _save_overlay(self, overlay: ConfirmationState) -> None:
        self.local_store.set(LOCAL_CONFIRMATIONS_KEY, overlay)

    def confirm(self, task_id: str, confirmed: bool, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Toggle one task, persist locally, then try the remote store"""
        with self._lock:
            if task_id not in self.task_ids():
                raise TaskNotFoundError(f"Unknown task id: {task_id}")
            overlay = set_confirmation(self.get_overlay(), task_id, confirmed)
            self._save_overlay(overlay)
            entry = overlay[task_id]

        synced = self.push_remote(user_id, overlay) if user_id else False
        logger.info(f"✅ Task {task_id} confirmed={confirmed}")
        return {"id": task_id, **entry, "synced": synced}

    def reset(self) -> None:
        with self._lock:
            self.local_store.delete(LOCAL_CONFIRMATIONS_KEY)
        logger.info("🔄 Progress reset")

    # === VIEWS ===

    def merged_sections(self) -> List[Section]:
        return apply_overlay(self._sections, self.get_overlay())

    def view(self, query: str = "", tab: str = "all") -> Dict[str, Any]:
        merged = self.merged_sections()
        return {
            "sections": [section.to_dict() for section in filter_sections(merged, query, tab)],
            "navigation": section_progress(merged),
            "progress": compute_progress(flatten_tasks(merged)),
        }

    def stats(self) -> Dict[str, Any]:
        merged = self.merged_sections()
        return {
            "progress": compute_progress(flatten_tasks(merged)),
            "sections": section_progress(merged),
        }

    def activity(self) -> List[Dict[str, Any]]:
        return activity_by_day(self.get_overlay())

    # === IMPORT / EXPORT ===

    def export_json(self) -> Dict[str, Any]:
        """Application export envelope {meta, progress, tasks}"""
        tasks = flatten_tasks(self.merged_sections())
        return {
            "meta": self.meta,
            "progress": compute_progress(tasks),
            "tasks": [task.to_dict() for task in tasks],
        }

    def import_json(self, payload: Any) -> int:
        """Restore confirmations from an export envelope, replacing the overlay"""
        if not isinstance(payload, dict) or not isinstance(payload.get("tasks"), list):
            raise ImportFormatError("Invalid file format: expected a 'tasks' list")
        overlay = overlay_from_tasks(item for item in payload["tasks"] if isinstance(item, dict))
        with self._lock:
            self._save_overlay(overlay)
        logger.info(f"📥 Imported {len(overlay)} confirmations from JSON")
        return len(overlay)

    def export_csv(self) -> str:
        return export_csv(flatten_tasks(self.merged_sections()))

    def import_csv(self, text: str) -> Dict[str, int]:
        """Replace sections and overlay with the contents of a CSV export"""
        sections = parse_csv(text, default_category=self.default_category)
        if not sections:
            raise ImportFormatError("No valid task data found")
        tasks: List[Task] = flatten_tasks(sections)
        overlay = overlay_from_tasks(tasks)
        with self._lock:
            self._sections = sections
            self._save_overlay(overlay)
        logger.info(f"📥 Imported {len(tasks)} tasks in {len(sections)} sections from CSV")
        return {"sections": len(sections), "tasks": len(tasks), "confirmed": len(overlay)}

    # === REMOTE SYNC ===

    def push_remote(self, user_id: Optional[str], overlay: Optional[ConfirmationState] = None) -> bool:
        """Upload the overlay; failures are logged and the local copy kept"""
        if self.remote_store is None or not user_id:
            return False
        data = overlay if overlay is not None else self.get_overlay()
        try:
            self.remote_store.set(user_id, data)
        except StoreError as e:
            logger.error(f"❌ Cloud sync failed, data kept locally: {e}")
            return False
        logger.info(f"☁️ Pushed {len(data)} confirmations for {user_id}")
        return True

    def pull_remote(self, user_id: Optional[str]) -> Dict[str, Any]:
        """Merge the remote overlay into the local one"""
        if self.remote_store is None or not user_id:
            return {"synced": False, "count": len(self.get_overlay())}
        try:
            remote = self.remote_store.get(user_id)
        except StoreError as e:
            logger.error(f"❌ Cloud load failed: {e}")
            return {"synced": False, "count": len(self.get_overlay())}

        with self._lock:
            merged = merge_overlays(self.get_overlay(), remote or {})
            self._save_overlay(merged)
        logger.info(f"☁️ Pulled {len(remote or {})} confirmations for {user_id}")
        return {
            "synced": True,
            "count": len(merged),
            "pulled_at": datetime.now(timezone.utc).isoformat(),
        }
