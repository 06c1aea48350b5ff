"""Network I/O collector."""

from __future__ import annotations

import logging

import psutil

from .base import BaseCollector, NetCounters

logger = logging.getLogger(__name__)


class NetworkCollector(BaseCollector):
    """Cumulative received/sent bytes across all interfaces.

    When *interface* is set only that interface is counted. If it disappears
    (unplugged, renamed) its last seen totals are repeated, or zeros if it was
    never seen, so the interval delta stays at 0 instead of jumping to the
    sum of every other interface.
    Counters are raw totals; the aggregator turns them into deltas.
    """

    def __init__(self, interface: str = "") -> None:
        self._interface = interface
        self._last = NetCounters(rx_bytes=0, tx_bytes=0)

    @property
    def name(self) -> str:
        return "network"

    def collect(self) -> NetCounters:
        counters = psutil.net_io_counters(pernic=True)
        if self._interface:
            nio = counters.get(self._interface)
            if nio is None:
                logger.debug("Interface %r not found, repeating last reading", self._interface)
                return self._last
            self._last = NetCounters(rx_bytes=nio.bytes_recv, tx_bytes=nio.bytes_sent)
            return self._last

        rx = tx = 0
        for nio in counters.values():
            rx += nio.bytes_recv
            tx += nio.bytes_sent
        return NetCounters(rx_bytes=rx, tx_bytes=tx)
