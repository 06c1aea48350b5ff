"""The sampling loop: one summary record per interval."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .aggregator.accumulator import IntervalAccumulator
from .aggregator.record import SummaryRecord
from .collector.base import BaseSource
from .config import ConfigError
from .exporter.base import BaseExporter
from .supervisor.watchdog import StopSwitch

logger = logging.getLogger(__name__)


class ClockError(RuntimeError):
    """The wall clock reads earlier than the Unix epoch."""


def epoch_seconds(clock: Callable[[], float] = time.time) -> int:
    now = clock()
    if now < 0:
        raise ClockError(f"system clock is before the epoch ({now})")
    return int(now)


class HostAgent:
    """Samples *source* once a second and hands each interval's summary to *exporter*.

    Everything runs on the calling thread. The one-second sleep is the only
    suspension point; the stop switch is checked after each record has been
    delivered, never in the middle of an interval.
    """

    def __init__(
        self,
        source: BaseSource,
        exporter: BaseExporter,
        stop_switch: StopSwitch,
        host: str,
        interval: int,
        component: str = "agent",
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            raise ConfigError(f"interval must be an integer >= 1, got {interval!r}")
        self._source = source
        self._exporter = exporter
        self._stop_switch = stop_switch
        self._interval = interval
        self._sleep = sleep
        self._clock = clock
        self.started = epoch_seconds(clock)
        self.accumulator = IntervalAccumulator(host, component, self.started, interval)
        self.records_emitted = 0

    def run_interval(self) -> SummaryRecord | None:
        """Sample one full interval and deliver its summary.

        Returns the delivered record, or None if nothing was sampled.
        """
        acc = self.accumulator
        acc.start(epoch_seconds(self._clock), self._source.uptime())
        for _ in range(self._interval):
            acc.update(self._source.refresh())
            self._sleep(1)

        record = acc.finalize()
        if record is not None:
            self._exporter.export(record)
            self.records_emitted += 1
            logger.debug(
                "Interval %d: cpu_avg=%.1f mem_avg=%.1f rx=%d tx=%d",
                record.timestamp, record.cpu_avg, record.mem_avg,
                record.net_rx_delta, record.net_tx_delta,
            )
        acc.reset()
        return record

    def run(self, max_intervals: int | None = None) -> int:
        """Run until the stop switch is set (or *max_intervals* have passed).

        Returns the number of records emitted.
        """
        logger.info("Sampling every second, reporting every %ds", self._interval)
        done = 0
        try:
            while max_intervals is None or done < max_intervals:
                self.run_interval()
                done += 1
                self._exporter.maintain()
                if self._stop_switch.triggered():
                    logger.info("Stop requested, leaving the sampling loop")
                    break
        finally:
            self._exporter.shutdown()
        return self.records_emitted
