"""Base interface for summary record sinks."""

from __future__ import annotations

import abc

from ..aggregator.record import SummaryRecord


class BaseExporter(abc.ABC):
    """Abstract base for sinks that receive one record per interval."""

    @abc.abstractmethod
    def export(self, record: SummaryRecord) -> None:
        """Deliver one summary record."""

    def maintain(self) -> None:
        """Per-interval housekeeping, run after :meth:`export`."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""
