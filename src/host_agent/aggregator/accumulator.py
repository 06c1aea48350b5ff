"""Running aggregation of raw snapshots over one interval."""

from __future__ import annotations

from dataclasses import dataclass

from ..collector.base import HostSnapshot, NetCounters
from .record import SummaryRecord


@dataclass
class _Series:
    """Running min / max / sum of one gauge."""

    total: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0

    def add(self, value: float, first: bool) -> None:
        if first:
            self.minimum = self.maximum = value
        else:
            self.minimum = min(self.minimum, value)
            self.maximum = max(self.maximum, value)
        self.total += value


class IntervalAccumulator:
    """Open summary for the interval currently being sampled.

    Only the sampling loop touches an accumulator: it calls :meth:`start`
    once, :meth:`update` once per raw snapshot, :meth:`finalize` to close the
    interval and :meth:`reset` before the next one.
    """

    def __init__(self, host: str, component: str, agent_started: int, interval: int) -> None:
        self.host = host
        self.component = component
        self.agent_started = agent_started
        self.interval = interval
        self.reset()

    def reset(self) -> None:
        """Return to the empty state."""
        self.timestamp = 0
        self.uptime = 0
        self.sample_count = 0
        self._cpu = _Series()
        self._mem = _Series()
        self._net_first: NetCounters | None = None
        self._net_last: NetCounters | None = None

    def start(self, timestamp: int, uptime: int) -> None:
        """Stamp the interval with its wall-clock start and host uptime."""
        self.timestamp = timestamp
        self.uptime = uptime

    def update(self, snapshot: HostSnapshot) -> None:
        """Fold one raw snapshot into the running aggregates."""
        first = self.sample_count == 0
        self._cpu.add(snapshot.cpu_percent, first)
        self._mem.add(snapshot.mem_percent, first)
        if first:
            self._net_first = snapshot.net
        self._net_last = snapshot.net
        self.sample_count += 1

    def finalize(self) -> SummaryRecord | None:
        """Close the interval.

        Returns None when no snapshot was folded in; there is nothing to
        average and nothing should be emitted.
        """
        if self.sample_count == 0:
            return None
        n = self.sample_count
        assert self._net_first is not None and self._net_last is not None
        return SummaryRecord(
            host=self.host,
            component=self.component,
            timestamp=self.timestamp,
            uptime=self.uptime,
            agent_started=self.agent_started,
            interval=self.interval,
            sample_count=n,
            cpu_avg=self._cpu.total / n,
            cpu_min=self._cpu.minimum,
            cpu_max=self._cpu.maximum,
            mem_avg=self._mem.total / n,
            mem_min=self._mem.minimum,
            mem_max=self._mem.maximum,
            net_rx_delta=counter_delta(self._net_first.rx_bytes, self._net_last.rx_bytes),
            net_tx_delta=counter_delta(self._net_first.tx_bytes, self._net_last.tx_bytes),
        )


def counter_delta(first: int, last: int) -> int:
    """Growth of a cumulative counter; a reset or wrap counts as zero."""
    return max(0, last - first)
