"""Configuration loading and validation for host_agent."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

LOG_TYPES = ("file", "udp", "otel")
ROTATE_MODES = ("rename", "truncate")


class ConfigError(ValueError):
    """Raised when the configuration cannot drive the agent."""


@dataclass
class AgentConfig:
    """Sampling loop settings."""

    interval: int = 10
    log_type: str = "file"
    component: str = "agent"


@dataclass
class PathsConfig:
    """Installation layout.

    ``bin_folder`` holds the ownership record and the stop marker,
    ``log_folder`` the file sink output and the startup record. Both default
    to sub-directories of ``root_folder``.
    """

    root_folder: str = "."
    app_folder: str = ""
    bin_folder: str = ""
    log_folder: str = ""

    @property
    def root_path(self) -> Path:
        return Path(self.root_folder).expanduser()

    @property
    def app_path(self) -> Path:
        return Path(self.app_folder).expanduser() if self.app_folder else self.root_path

    @property
    def bin_path(self) -> Path:
        return Path(self.bin_folder).expanduser() if self.bin_folder else self.root_path / "bin"

    @property
    def log_path(self) -> Path:
        return Path(self.log_folder).expanduser() if self.log_folder else self.root_path / "logs"


@dataclass
class FileSinkConfig:
    """Append-only log file settings."""

    filename: str = "hostagent_json.log"
    startup_filename: str = "startup_json.log"
    max_bytes: int = 10 * 1024 * 1024
    rotate_mode: str = "rename"


@dataclass
class UdpConfig:
    """Datagram destination."""

    host: str = "127.0.0.1"
    port: int = 5140


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    endpoint: str = "http://localhost:4318"
    service_name: str = "host-agent"
    headers: dict[str, str] = field(default_factory=dict)
    export_interval_ms: int = 10000


@dataclass
class CollectorConfig:
    """Metric source settings."""

    network_interface: str = ""


@dataclass
class HostAgentConfig:
    """Top-level host_agent configuration."""

    agent: AgentConfig = field(default_factory=AgentConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    file_sink: FileSinkConfig = field(default_factory=FileSinkConfig)
    udp: UdpConfig = field(default_factory=UdpConfig)
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)

    @property
    def pid_file(self) -> Path:
        return self.paths.bin_path / ".agent.pid"

    @property
    def stop_file(self) -> Path:
        return self.paths.bin_path / ".agent.stop"

    @property
    def log_file(self) -> Path:
        return self.paths.log_path / self.file_sink.filename

    @property
    def startup_file(self) -> Path:
        return self.paths.log_path / self.file_sink.startup_filename


_INT_KEYS = {"interval", "port", "max_bytes", "export_interval_ms"}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using HOST_AGENT_ prefix."""
    env_map = {
        "HOST_AGENT_INTERVAL": ("agent", "interval"),
        "HOST_AGENT_LOG_TYPE": ("agent", "log_type"),
        "HOST_AGENT_UDP_HOST": ("udp", "host"),
        "HOST_AGENT_UDP_PORT": ("udp", "port"),
        "HOST_AGENT_ROOT_FOLDER": ("paths", "root_folder"),
        "HOST_AGENT_BIN_FOLDER": ("paths", "bin_folder"),
        "HOST_AGENT_LOG_FOLDER": ("paths", "log_folder"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            final_key = path[-1]
            if final_key in _INT_KEYS:
                try:
                    obj[final_key] = int(value)
                except ValueError as exc:
                    raise ConfigError(f"{env_key} must be an integer, got {value!r}") from exc
            else:
                obj[final_key] = value
    return data


def _section(cls: type, raw: Any) -> Any:
    if not isinstance(raw, dict):
        return cls()
    return cls(**{k: v for k, v in raw.items() if k in cls.__dataclass_fields__})


def _dict_to_config(data: dict[str, Any]) -> HostAgentConfig:
    """Convert a raw dictionary to a HostAgentConfig dataclass."""
    return HostAgentConfig(
        agent=_section(AgentConfig, data.get("agent", {})),
        paths=_section(PathsConfig, data.get("paths", {})),
        file_sink=_section(FileSinkConfig, data.get("file_sink", {})),
        udp=_section(UdpConfig, data.get("udp", {})),
        otel=_section(OtelExporterConfig, data.get("otel", {})),
        collector=_section(CollectorConfig, data.get("collector", {})),
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(cfg: HostAgentConfig) -> HostAgentConfig:
    """Reject settings the sampling loop cannot run with.

    Returns *cfg* unchanged so calls can be chained.
    """
    if not _is_int(cfg.agent.interval) or cfg.agent.interval < 1:
        raise ConfigError(f"agent.interval must be an integer >= 1, got {cfg.agent.interval!r}")
    if cfg.agent.log_type not in LOG_TYPES:
        raise ConfigError(
            f"agent.log_type must be one of {', '.join(LOG_TYPES)}, got {cfg.agent.log_type!r}"
        )
    if cfg.agent.log_type == "udp":
        if not cfg.udp.host:
            raise ConfigError("udp.host is required when log_type is udp")
        if not _is_int(cfg.udp.port) or not 0 < cfg.udp.port < 65536:
            raise ConfigError(f"udp.port must be an integer in 1..65535, got {cfg.udp.port!r}")
    if cfg.file_sink.rotate_mode not in ROTATE_MODES:
        raise ConfigError(
            f"file_sink.rotate_mode must be one of {', '.join(ROTATE_MODES)}, "
            f"got {cfg.file_sink.rotate_mode!r}"
        )
    if not _is_int(cfg.file_sink.max_bytes) or cfg.file_sink.max_bytes < 1:
        raise ConfigError(f"file_sink.max_bytes must be a positive integer, got {cfg.file_sink.max_bytes!r}")
    return cfg


def load_config(path: str | Path | None = None) -> HostAgentConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``host_agent.yaml`` in the current directory if *path* is None.
    The result is not validated; see :func:`validate_config`.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("host_agent.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
