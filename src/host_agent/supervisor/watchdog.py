"""Checks the sampling loop runs once per interval boundary."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class StopSwitch:
    """Cooperative stop request signalled by the presence of a marker file.

    The marker's content is never read. :meth:`triggered` consumes the
    marker so the next agent launch is not stopped by a stale request.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def request(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch()

    def pending(self) -> bool:
        return self.path.exists()

    def triggered(self) -> bool:
        if not self.path.exists():
            return False
        logger.info("Stop marker %s found", self.path)
        self.path.unlink(missing_ok=True)
        return True


class LogSizeWatchdog:
    """Keeps a log file under *max_bytes*.

    ``rename`` moves an oversized file to ``<name>.1`` (replacing an older
    backup), ``truncate`` empties it in place. Writers must reopen the path
    after a rotation.
    """

    def __init__(self, path: str | Path, max_bytes: int, mode: str = "rename") -> None:
        self.path = Path(path)
        self.max_bytes = max_bytes
        self.mode = mode

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".1")

    def size(self) -> int:
        try:
            return self.path.stat().st_size
        except FileNotFoundError:
            return 0

    def check(self) -> bool:
        """Rotate the file if it grew past the limit. Returns True if it did."""
        size = self.size()
        if size <= self.max_bytes:
            return False
        if self.mode == "truncate":
            with open(self.path, "r+b") as fh:
                fh.truncate(0)
        else:
            os.replace(self.path, self.backup_path)
        logger.info("Rotated %s (%d bytes, mode=%s)", self.path, size, self.mode)
        return True
