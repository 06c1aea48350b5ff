"""Local file exporter – appends summary records to a JSONL log."""

from __future__ import annotations

import logging
from pathlib import Path

from ..aggregator.record import SummaryRecord
from ..supervisor.watchdog import LogSizeWatchdog
from .base import BaseExporter

logger = logging.getLogger(__name__)


class FileExporter(BaseExporter):
    """Writes one JSON object per line to *path*, flushing every record.

    Write and flush errors propagate: the file is the only delivery path and
    losing it silently is worse than stopping. The file is size-capped by a
    :class:`LogSizeWatchdog` run from :meth:`maintain`.
    """

    def __init__(
        self,
        path: str | Path,
        max_bytes: int = 10 * 1024 * 1024,
        rotate_mode: str = "rename",
    ) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = None
        self._watchdog = LogSizeWatchdog(self._path, max_bytes, rotate_mode)
        logger.info("FileExporter initialized → %s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_file(self) -> None:
        if self._fh is None:
            self._fh = open(self._path, "a", encoding="utf-8")  # noqa: SIM115

    def export(self, record: SummaryRecord) -> None:
        self._ensure_file()
        assert self._fh is not None
        self._fh.write(record.to_json() + "\n")
        self._fh.flush()

    def maintain(self) -> None:
        if self._watchdog.check():
            self._close()

    def _close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def shutdown(self) -> None:
        self._close()
        logger.info("FileExporter shut down")
