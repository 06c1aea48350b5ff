"""Process singleton guard backed by a pid file.

At most one ``agent`` process should sample a host. The guard runs once at
startup and decides, from the pid file and a snapshot of the process table,
whether the calling process becomes the owner or defers to an older one.

The read-decide-write sequence is not atomic. Two agents started in the same
instant can both find no pid file and both claim ownership; the cost is a
duplicate sampler, which is accepted in exchange for not needing OS locks.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from ..collector.process import (
    ProcessInfo,
    ProcessTable,
    PsutilProcessTable,
    invocation_mode,
    launcher_prefix,
)

logger = logging.getLogger(__name__)

AGENT_MODE = "agent"
_PID_RE = re.compile(r"[0-9]+")


class CorruptOwnershipRecord(RuntimeError):
    """The pid file did not hold a process id. It has been deleted."""


class GuardDecision(enum.Enum):
    OWNER = "owner"
    DEFER = "defer"


@dataclass(frozen=True)
class GuardResult:
    decision: GuardDecision
    owner_pid: int

    @property
    def is_owner(self) -> bool:
        return self.decision is GuardDecision.OWNER


class SingletonGuard:
    """Decides whether the calling process is the host's active agent.

    *table* defaults to the live psutil process table. *launcher* is the
    command-line prefix shared by every agent process (interpreter and entry
    script); it defaults to the prefix the current process was started with.
    """

    def __init__(
        self,
        pid_file: str | Path,
        table: ProcessTable | None = None,
        launcher: tuple[str, ...] | None = None,
        mode: str = AGENT_MODE,
    ) -> None:
        self.pid_file = Path(pid_file)
        self._table = table or PsutilProcessTable()
        self._launcher = launcher
        self._mode = mode

    def check(self) -> GuardResult:
        """Run the ownership handshake.

        Raises :class:`CorruptOwnershipRecord` if the pid file is unreadable
        as a pid, and lets ``OSError`` from the pid file propagate.
        """
        me = self._table.current()
        if not self.pid_file.exists():
            return self._claim_fresh(me)

        owner = self.read_owner()
        if owner == me.pid:
            # left over from an earlier process that had our pid
            logger.info("Ownership record already names pid %d, keeping it", me.pid)
            self._write(me.pid)
            return GuardResult(GuardDecision.OWNER, me.pid)
        if self._table.is_running(owner):
            logger.info("Agent with pid %d is already running", owner)
            return GuardResult(GuardDecision.DEFER, owner)

        logger.info("Agent with pid %d is not running, taking over as pid %d", owner, me.pid)
        self._write(me.pid)
        return GuardResult(GuardDecision.OWNER, me.pid)

    def read_owner(self) -> int:
        """Return the pid stored in the pid file.

        A file that does not hold a pid is deleted before
        :class:`CorruptOwnershipRecord` is raised.
        """
        raw = self.pid_file.read_bytes()
        try:
            text = raw.decode("ascii").strip()
        except UnicodeDecodeError:
            text = ""
        if not _PID_RE.fullmatch(text):
            self.pid_file.unlink()
            raise CorruptOwnershipRecord(f"{self.pid_file} does not contain a pid: {raw[:32]!r}")
        return int(text)

    def release(self, pid: int) -> bool:
        """Delete the pid file if it still names *pid*."""
        try:
            owner = self.read_owner()
        except (FileNotFoundError, CorruptOwnershipRecord):
            return False
        if owner != pid:
            return False
        self.pid_file.unlink(missing_ok=True)
        logger.info("Released ownership record %s", self.pid_file)
        return True

    def candidates(self, me: ProcessInfo) -> list[ProcessInfo]:
        """Other agent processes started from the same program as *me*."""
        launcher = self._launcher if self._launcher is not None else launcher_prefix(me.cmdline)
        n = len(launcher)
        found = []
        for proc in self._table.snapshot():
            if proc.pid == me.pid or proc.pid == me.ppid or proc.ppid == me.pid:
                continue
            if not me.exe or proc.exe != me.exe:
                continue
            if proc.cmdline[:n] != tuple(launcher):
                continue
            if invocation_mode(proc.cmdline[n:]) != self._mode:
                continue
            found.append(proc)
        return found

    def _claim_fresh(self, me: ProcessInfo) -> GuardResult:
        found = self.candidates(me)
        if found:
            oldest = min(found, key=lambda p: (p.create_time, p.pid))
            logger.info("Found running agent with pid %d", oldest.pid)
            self._write(oldest.pid)
            return GuardResult(GuardDecision.DEFER, oldest.pid)
        self._write(me.pid)
        logger.info("No running agent found, pid %d written to %s", me.pid, self.pid_file)
        return GuardResult(GuardDecision.OWNER, me.pid)

    def _write(self, pid: int) -> None:
        self.pid_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.pid_file, "w", encoding="ascii") as fh:
            fh.write(f"{pid}\n")
