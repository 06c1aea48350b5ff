"""Output sinks for summary records."""

from __future__ import annotations

from ..config import HostAgentConfig
from .base import BaseExporter
from .local import FileExporter
from .udp import DatagramExporter

__all__ = ["BaseExporter", "DatagramExporter", "FileExporter", "create_exporter"]


def create_exporter(cfg: HostAgentConfig) -> BaseExporter:
    """Build the sink selected by ``agent.log_type``."""
    log_type = cfg.agent.log_type
    if log_type == "file":
        return FileExporter(
            cfg.log_file,
            max_bytes=cfg.file_sink.max_bytes,
            rotate_mode=cfg.file_sink.rotate_mode,
        )
    if log_type == "udp":
        return DatagramExporter(cfg.udp.host, cfg.udp.port)
    if log_type == "otel":
        from .otel import OtelExporter
        return OtelExporter(cfg.otel)
    raise ValueError(f"unknown log_type {log_type!r}")
