"""Process table snapshots used by the singleton guard."""

from __future__ import annotations

import abc
import logging
import os
import sys
from dataclasses import dataclass, field

import psutil

logger = logging.getLogger(__name__)

# Global CLI options that consume the following token.
OPTIONS_WITH_VALUES = frozenset({"-c", "--config"})


@dataclass(frozen=True)
class ProcessInfo:
    """The fields of a running process the guard cares about."""

    pid: int
    ppid: int
    exe: str
    create_time: float
    cmdline: tuple[str, ...] = field(default_factory=tuple)


class ProcessTable(abc.ABC):
    """Queryable view of the processes running on this host."""

    @abc.abstractmethod
    def current(self) -> ProcessInfo:
        """The calling process."""

    @abc.abstractmethod
    def snapshot(self) -> list[ProcessInfo]:
        """Every process visible to the caller, the caller included."""

    @abc.abstractmethod
    def is_running(self, pid: int) -> bool:
        """Whether any process with *pid* currently exists."""


def _info_from(proc_info: dict) -> ProcessInfo:
    return ProcessInfo(
        pid=proc_info["pid"],
        ppid=proc_info.get("ppid") or 0,
        exe=proc_info.get("exe") or "",
        create_time=proc_info.get("create_time") or 0.0,
        cmdline=tuple(proc_info.get("cmdline") or ()),
    )


class PsutilProcessTable(ProcessTable):
    """Process table read from the operating system through psutil."""

    _ATTRS = ["pid", "ppid", "exe", "create_time", "cmdline"]

    def current(self) -> ProcessInfo:
        proc = psutil.Process(os.getpid())
        return _info_from(proc.as_dict(attrs=self._ATTRS))

    def snapshot(self) -> list[ProcessInfo]:
        processes: list[ProcessInfo] = []
        for proc in psutil.process_iter(self._ATTRS):
            try:
                processes.append(_info_from(proc.info))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        logger.debug("Process table snapshot: %d processes", len(processes))
        return processes

    def is_running(self, pid: int) -> bool:
        return psutil.pid_exists(pid)


class StaticProcessTable(ProcessTable):
    """A fixed process table, for callers that must not touch the OS."""

    def __init__(self, processes: list[ProcessInfo], current_pid: int) -> None:
        self._processes = {p.pid: p for p in processes}
        if current_pid not in self._processes:
            raise ValueError(f"current pid {current_pid} is not in the table")
        self._current_pid = current_pid

    def current(self) -> ProcessInfo:
        return self._processes[self._current_pid]

    def snapshot(self) -> list[ProcessInfo]:
        return list(self._processes.values())

    def is_running(self, pid: int) -> bool:
        return pid in self._processes


def launcher_prefix(cmdline: tuple[str, ...] | list[str], argv: list[str] | None = None) -> tuple[str, ...]:
    """Return the part of *cmdline* that launched the program.

    For ``python3 /usr/bin/host-agent agent`` with ``sys.argv`` equal to
    ``['/usr/bin/host-agent', 'agent']`` this is
    ``('python3', '/usr/bin/host-agent')``.
    """
    if argv is None:
        argv = sys.argv
    n_args = max(len(argv) - 1, 0)
    return tuple(cmdline[: len(cmdline) - n_args]) if n_args else tuple(cmdline)


def invocation_mode(args: tuple[str, ...] | list[str]) -> str | None:
    """First positional argument in *args*, skipping global options."""
    skip = False
    for arg in args:
        if skip:
            skip = False
            continue
        if arg in OPTIONS_WITH_VALUES:
            skip = True
            continue
        if arg.startswith("-"):
            continue
        return arg
    return None
