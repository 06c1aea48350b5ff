"""Memory usage collector."""

from __future__ import annotations

import psutil

from .base import BaseCollector


class MemoryCollector(BaseCollector):
    """Physical memory usage percentage."""

    @property
    def name(self) -> str:
        return "memory"

    def collect(self) -> float:
        return float(psutil.virtual_memory().percent)
