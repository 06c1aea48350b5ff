"""Metric sources backed by psutil."""

from .base import BaseCollector, BaseSource, HostSnapshot, NetCounters
from .source import HostSource

__all__ = ["BaseCollector", "BaseSource", "HostSnapshot", "HostSource", "NetCounters"]
