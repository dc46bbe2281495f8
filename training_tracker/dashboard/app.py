#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Training Tracker - FastAPI Application
Onboarding checklist dashboard: task list, confirmations, import/export, sync
"""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from ..config import TrackerSettings
from ..core.models import flatten_tasks
from ..core.progress import compute_progress
from ..services.progress_service import ProgressService
from ..utils.logger import setup_logging
from . import dependencies
from .api import auth, progress, tasks

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def create_app(settings: Optional[TrackerSettings] = None) -> FastAPI:
    """Build the dashboard application around process-wide dependencies"""
    settings = dependencies.configure(settings)
    setup_logging(settings)
    app_start_time = time.time()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"🚀 Starting {settings.APP_NAME}...")
        try:
            service = dependencies.init_progress_service()
            logger.info(f"📝 Loaded tasks: {len(service.task_ids())}")
            logger.info(f"🌐 Dashboard available at http://{settings.DASHBOARD_HOST}:{settings.DASHBOARD_PORT}")
        except Exception as e:
            # routes retry initialization on first use
            logger.error(f"❌ Initialization error: {e}")
        yield
        logger.info("🛑 Dashboard stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Onboarding training checklist with progress tracking",
        version=settings.VERSION,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # ===== MIDDLEWARE =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(f"❌ Request failed: {request.method} {request.url.path}: {e} ({process_time:.3f}s)")
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})

        process_time = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response

    # ===== ROUTES =====

    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(progress.router)

    @app.get("/api/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.VERSION,
            "uptime_seconds": round(time.time() - app_start_time, 2),
            "config": settings.to_dict(),
        }

    @app.get("/", response_class=HTMLResponse)
    async def dashboard_home(
        request: Request,
        service: ProgressService = Depends(dependencies.get_progress_service),
    ):
        sections = service.merged_sections()
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "title": settings.APP_NAME,
                "meta": service.meta,
                "sections": sections,
                "progress": compute_progress(flatten_tasks(sections)),
            },
        )

    return app
