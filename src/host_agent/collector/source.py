"""The psutil-backed metric source used by the sampling loop."""

from __future__ import annotations

import time

import psutil

from ..config import CollectorConfig
from .base import BaseSource, HostSnapshot
from .cpu import CpuCollector
from .memory import MemoryCollector
from .network import NetworkCollector


class HostSource(BaseSource):
    """Combines the CPU, memory and network collectors into one snapshot.

    Holds no state beyond what psutil needs between CPU readings.
    """

    def __init__(self, config: CollectorConfig | None = None) -> None:
        config = config or CollectorConfig()
        self._cpu = CpuCollector()
        self._memory = MemoryCollector()
        self._network = NetworkCollector(interface=config.network_interface)

    def refresh(self) -> HostSnapshot:
        return HostSnapshot(
            cpu_percent=self._cpu.collect(),
            mem_percent=self._memory.collect(),
            net=self._network.collect(),
        )

    def uptime(self) -> int:
        return max(0, int(time.time() - psutil.boot_time()))
