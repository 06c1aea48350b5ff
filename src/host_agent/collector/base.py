"""Base interfaces for the metric source adapter."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NetCounters:
    """Cumulative byte counters, summed over the selected interfaces."""

    rx_bytes: int
    tx_bytes: int


@dataclass(frozen=True)
class HostSnapshot:
    """One raw reading of the host, taken by :meth:`BaseSource.refresh`."""

    cpu_percent: float
    mem_percent: float
    net: NetCounters


class BaseCollector(abc.ABC):
    """Abstract base class for a single psutil reading."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Collector name used in log messages."""

    @abc.abstractmethod
    def collect(self) -> Any:
        """Return the current reading."""


class BaseSource(abc.ABC):
    """Something the sampling loop can refresh once per second."""

    @abc.abstractmethod
    def refresh(self) -> HostSnapshot:
        """Query the operating system and return a fresh snapshot."""

    @abc.abstractmethod
    def uptime(self) -> int:
        """Host uptime in whole seconds."""
