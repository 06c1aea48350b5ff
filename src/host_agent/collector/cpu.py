"""CPU usage collector."""

from __future__ import annotations

import psutil

from .base import BaseCollector


class CpuCollector(BaseCollector):
    """Overall CPU usage percentage since the previous call."""

    def __init__(self) -> None:
        # prime cpu_percent so the first real call measures a full period
        psutil.cpu_percent(interval=0)

    @property
    def name(self) -> str:
        return "cpu"

    def collect(self) -> float:
        return float(psutil.cpu_percent(interval=0))
