#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Training Tracker - Confirmation Stores
Key-value stores behind the confirmation overlay

JsonFileStore plays the role of browser local storage; SqlProgressStore is
the remote (or embedded) user_progress table keyed by user id.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from sqlalchemy import Column, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class StoreError(Exception):
    """Backing file or database could not be read or written"""
    pass

# ===== INTERFACE =====

class KeyValueStore(Protocol):
    """get(key) -> optional value, set(key, value) raising StoreError"""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

# ===== LOCAL JSON FILE =====

class JsonFileStore:
    """Single JSON object file, rewritten atomically on every mutation"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.RLock()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"⚠️ Local store {self.path} unreadable, starting empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"⚠️ Local store {self.path} is not a JSON object, ignoring it")
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".store-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StoreError(f"Cannot write local store {self.path}: {e}") from e

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)

# ===== REMOTE TABLE =====

Base = declarative_base()


class UserProgress(Base):
    __tablename__ = "user_progress"

    user_id = Column(String(128), primary_key=True)
    confirmations = Column(Text, nullable=False, default="{}")
    updated_at = Column(String(40), nullable=False)


class SqlProgressStore:
    """user_progress rows keyed by user id, confirmations kept as JSON text"""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        try:
            self._engine = create_engine(database_url, echo=echo, future=True)
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot open progress database: {e}") from e
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            with self._session_factory() as session:
                row = session.get(UserProgress, key)
                if row is None:
                    return None
                raw = row.confirmations
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot read progress for {key}: {e}") from e
        try:
            data = json.loads(raw or "{}")
        except json.JSONDecodeError:
            logger.warning(f"⚠️ Corrupt confirmations for {key}, ignoring remote row")
            return None
        return data if isinstance(data, dict) else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        payload = json.dumps(value, ensure_ascii=False)
        try:
            with self._session_factory() as session:
                with session.begin():
                    row = session.get(UserProgress, key)
                    if row is None:
                        session.add(UserProgress(user_id=key, confirmations=payload, updated_at=now))
                    else:
                        row.confirmations = payload
                        row.updated_at = now
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot save progress for {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                with session.begin():
                    row = session.get(UserProgress, key)
                    if row is not None:
                        session.delete(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot delete progress for {key}: {e}") from e

    def updated_at(self, key: str) -> Optional[str]:
        try:
            with self._session_factory() as session:
                row = session.get(UserProgress, key)
                return row.updated_at if row is not None else None
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot read progress for {key}: {e}") from e

    def close(self) -> None:
        self._engine.dispose()
