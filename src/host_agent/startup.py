"""One-shot startup record describing the host and the installation."""

from __future__ import annotations

import json
import logging
import os
import platform
import time
from pathlib import Path

import psutil

from . import __version__
from .config import HostAgentConfig

logger = logging.getLogger(__name__)


def build_startup_record(host: str, cfg: HostAgentConfig) -> dict:
    """Describe the host once, at boot or install time."""
    now = time.time()
    boot = psutil.boot_time()
    return {
        "host": host,
        "component": "startup",
        "timestamp": int(now),
        "boot_time": int(boot),
        "uptime": max(0, int(now - boot)),
        "os": platform.system(),
        "os_release": platform.release(),
        "machine": platform.machine(),
        "python": platform.python_version(),
        "cpu_count": os.cpu_count() or 0,
        "mem_total": psutil.virtual_memory().total,
        "root_folder": str(cfg.paths.root_path),
        "app_folder": str(cfg.paths.app_path),
        "version": __version__,
    }


def write_startup_record(path: str | Path, record: dict) -> Path:
    """Replace *path* with *record* as a single JSON line."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(json.dumps(record) + "\n")
    logger.info("Startup record written to %s", path)
    return path
