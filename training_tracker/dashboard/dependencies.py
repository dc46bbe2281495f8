#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Training Tracker - Dashboard Dependencies
Process-wide providers for FastAPI routes

The progress service and the session registry are created on first use
and reused for the rest of the process.
"""

import logging
import secrets
import threading
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import TrackerSettings, get_settings as get_default_settings
from ..database.stores import JsonFileStore, SqlProgressStore, StoreError
from ..services.progress_service import ProgressService
from ..services.task_source import load_meta, load_sections

logger = logging.getLogger(__name__)

# ===== GLOBALS =====

_settings: Optional[TrackerSettings] = None
_progress_service: Optional[ProgressService] = None
_session_registry: Optional["SessionRegistry"] = None
_init_lock = threading.Lock()

bearer_scheme = HTTPBearer(auto_error=False)

# ===== SESSIONS =====

class SessionRegistry:
    """In-memory demo sessions, token -> user"""

    def __init__(self, settings: TrackerSettings):
        self.settings = settings
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def login(self, name: Optional[str] = None) -> Dict[str, Any]:
        user = {
            "id": self.settings.DEMO_USER_ID,
            "name": (name or "").strip() or self.settings.DEMO_USER_NAME,
            "token": secrets.token_urlsafe(24),
        }
        with self._lock:
            self._sessions[user["token"]] = user
        return user

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._sessions.get(token)

    def logout(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

# ===== INITIALIZATION =====

def configure(settings: Optional[TrackerSettings] = None) -> TrackerSettings:
    """Install settings and drop previously built singletons"""
    global _settings, _progress_service, _session_registry
    with _init_lock:
        _settings = settings or get_default_settings()
        _progress_service = None
        _session_registry = None
    return _settings


def get_settings() -> TrackerSettings:
    return _settings or get_default_settings()


def build_progress_service(settings: TrackerSettings) -> ProgressService:
    sections = load_sections(settings)
    local_store = JsonFileStore(settings.local_store_path)

    remote_store = None
    if settings.DATABASE_URL:
        try:
            remote_store = SqlProgressStore(settings.DATABASE_URL)
            logger.info("☁️ Remote progress store connected")
        except StoreError as e:
            logger.warning(f"⚠️ Remote store unavailable, working locally: {e}")

    return ProgressService(
        sections,
        local_store=local_store,
        remote_store=remote_store,
        meta=load_meta(settings.META_FILE),
        default_category=settings.DEFAULT_CATEGORY,
    )


def init_progress_service() -> ProgressService:
    global _progress_service
    with _init_lock:
        if _progress_service is None:
            logger.info("🔄 Initializing ProgressService...")
            _progress_service = build_progress_service(get_settings())
            logger.info("✅ ProgressService initialized")
        return _progress_service

# ===== PROVIDERS =====

async def get_progress_service() -> ProgressService:
    if _progress_service is None:
        return init_progress_service()
    return _progress_service


async def get_session_registry() -> SessionRegistry:
    global _session_registry
    with _init_lock:
        if _session_registry is None:
            _session_registry = SessionRegistry(get_settings())
        return _session_registry


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    sessions: SessionRegistry = Depends(get_session_registry),
) -> Dict[str, Any]:
    """Protected routes: a demo token from /api/auth/login is required"""
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user = sessions.get(credentials.credentials)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")
    return user
