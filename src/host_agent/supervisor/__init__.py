"""Single-instance supervision and cooperative shutdown."""

from .guard import CorruptOwnershipRecord, GuardDecision, GuardResult, SingletonGuard
from .watchdog import LogSizeWatchdog, StopSwitch

__all__ = [
    "CorruptOwnershipRecord",
    "GuardDecision",
    "GuardResult",
    "LogSizeWatchdog",
    "SingletonGuard",
    "StopSwitch",
]
