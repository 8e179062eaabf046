# -*- coding: utf-8 -*-
# lanprint/config.py
from __future__ import annotations

import os
from typing import Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service defaults. Override with LANPRINT_* environment variables or .env."""

    model_config = SettingsConfigDict(env_prefix="LANPRINT_", env_file=".env", extra="ignore")

    # printer side
    default_port: int = 9100
    connect_timeout_ms: int = 5000
    write_timeout_ms: int = 5000
    probe_timeout_ms: int = 2000
    max_print_width: int = 384

    # autodetect defaults
    default_base_ip: str = "192.168.1"
    default_start_range: int = 100
    default_end_range: int = 110
    sweep_parallelism: int = 16

    # worker pool
    max_workers: int = 32

    # logs
    log_path: str = "logs/lanprint.json"
    log_rotation: str = "1 MB"

    # http
    host: str = "0.0.0.0"
    port: int = 3000


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


_log_sink_id: Optional[int] = None


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Add the serialized JSON file sink once per process."""
    global _log_sink_id
    if _log_sink_id is not None:
        return
    settings = settings or get_settings()
    log_dir = os.path.dirname(settings.log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    _log_sink_id = logger.add(settings.log_path, rotation=settings.log_rotation, serialize=True)
