#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Training Tracker - Configuration
Settings for the dashboard, task sources and progress stores

Values come from environment variables or a local .env file.
"""

import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent
BUNDLED_DATA_DIR = PACKAGE_DIR / "data"


class TrackerSettings(BaseSettings):
    """Onboarding training tracker settings"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ===== GENERAL =====

    APP_NAME: str = Field(
        default="Onboarding Training Tracker",
        description="Application name"
    )

    VERSION: str = Field(
        default="1.0.0",
        description="Application version"
    )

    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment (development/production/testing)"
    )

    DEBUG: bool = Field(
        default=False,
        description="Debug mode, exposes API docs"
    )

    # ===== NETWORK =====

    DASHBOARD_HOST: str = Field(
        default="127.0.0.1",
        description="Dashboard bind host"
    )

    DASHBOARD_PORT: int = Field(
        default=8000,
        description="Dashboard bind port"
    )

    ALLOWED_ORIGINS: List[str] = Field(
        default=["*"],
        description="CORS origins"
    )

    # ===== DATA =====

    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Directory for local progress files"
    )

    TASKS_FILE: Path = Field(
        default=BUNDLED_DATA_DIR / "tasks.json",
        description="Bundled spreadsheet row feed ([{row, cells}])"
    )

    META_FILE: Path = Field(
        default=BUNDLED_DATA_DIR / "meta.json",
        description="Employee/position metadata for the export envelope"
    )

    LOCAL_STORE_FILE: Optional[Path] = Field(
        default=None,
        description="Local confirmation store, defaults to DATA_DIR/local_store.json"
    )

    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL of the remote progress table"
    )

    # ===== GOOGLE SHEETS =====

    GOOGLE_SHEET_ID: Optional[str] = Field(
        default=None,
        description="Spreadsheet key of the live task sheet"
    )

    GOOGLE_CREDENTIALS_FILE: str = Field(
        default="service_account.json",
        description="Service account credentials"
    )

    GOOGLE_WORKSHEET: str = Field(
        default="tasks",
        description="Worksheet title with the task rows"
    )

    # ===== PARSER =====

    DATA_START_ROW: int = Field(
        default=9,
        description="First spreadsheet row holding task data"
    )

    DEFAULT_CATEGORY: str = Field(
        default="General",
        description="Category for tasks before any category cell appears"
    )

    PARSER_STRATEGY: str = Field(
        default="offset",
        description="Row mapping: offset (fixed start row) or marker (section marker words)"
    )

    # ===== LOGGING =====

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)"
    )

    LOG_FORMAT: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        description="Log record format"
    )

    LOG_DIR: Path = Field(
        default=Path("logs"),
        description="Log directory"
    )

    LOG_TO_FILE: bool = Field(
        default=False,
        description="Also write a rotating log file"
    )

    # ===== DEMO LOGIN =====

    DEMO_USER_ID: str = Field(
        default="demo-user-001",
        description="User id issued by the demo login"
    )

    DEMO_USER_NAME: str = Field(
        default="Demo User",
        description="Display name issued by the demo login"
    )

    # ===== VALIDATORS =====

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed_envs = ["development", "production", "testing", "staging"]
        if v.lower() not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("DASHBOARD_PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("DASHBOARD_PORT must be between 1 and 65535")
        return v

    @field_validator("PARSER_STRATEGY")
    @classmethod
    def validate_parser_strategy(cls, v: str) -> str:
        if v.lower() not in ("offset", "marker"):
            raise ValueError("PARSER_STRATEGY must be 'offset' or 'marker'")
        return v.lower()

    # ===== HELPERS =====

    @property
    def google_enabled(self) -> bool:
        return bool(self.GOOGLE_SHEET_ID)

    @property
    def local_store_path(self) -> Path:
        return self.LOCAL_STORE_FILE or self.DATA_DIR / "local_store.json"

    def get_logging_config(self) -> Dict[str, Any]:
        """dictConfig for console and optional rotating file output"""
        handlers = ["console"]
        handler_config: Dict[str, Any] = {
            "console": {
                "class": "logging.StreamHandler",
                "level": self.LOG_LEVEL,
                "formatter": "default",
                "stream": sys.stdout,
            }
        }
        if self.LOG_TO_FILE:
            handlers.append("file")
            handler_config["file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "level": self.LOG_LEVEL,
                "formatter": "default",
                "filename": str(self.LOG_DIR / f"tracker_{self.ENVIRONMENT}.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5,
                "encoding": "utf-8",
            }

        quiet = {"level": "WARNING", "handlers": handlers, "propagate": False}
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": self.LOG_FORMAT,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": handler_config,
            "loggers": {
                "": {"level": self.LOG_LEVEL, "handlers": handlers, "propagate": False},
                "uvicorn.access": dict(quiet),
                "gspread": dict(quiet),
                "urllib3": dict(quiet),
                "sqlalchemy.engine": dict(quiet),
            },
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_name": self.APP_NAME,
            "version": self.VERSION,
            "environment": self.ENVIRONMENT,
            "parser_strategy": self.PARSER_STRATEGY,
            "google_sheets": self.google_enabled,
            "remote_store": bool(self.DATABASE_URL),
            "log_level": self.LOG_LEVEL,
        }


@lru_cache()
def get_settings() -> TrackerSettings:
    """Process-wide settings instance"""
    return TrackerSettings()


__all__ = ["TrackerSettings", "get_settings", "BUNDLED_DATA_DIR"]
