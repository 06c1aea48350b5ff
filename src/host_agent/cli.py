"""CLI interface for host_agent."""

from __future__ import annotations

import argparse
import logging
import socket
import sys

from . import __version__
from .config import ConfigError, HostAgentConfig, load_config, validate_config

logger = logging.getLogger("host_agent")


def _load(args: argparse.Namespace) -> HostAgentConfig:
    return validate_config(load_config(args.config))


def _cmd_startup(args: argparse.Namespace) -> int:
    """Write the one-shot startup record and exit."""
    cfg = _load(args)

    from .startup import build_startup_record, write_startup_record

    record = build_startup_record(socket.gethostname(), cfg)
    write_startup_record(cfg.startup_file, record)
    print(f"Startup record written to {cfg.startup_file}")
    return 0


def _cmd_agent(args: argparse.Namespace) -> int:
    """Claim ownership of this host and run the sampling loop."""
    cfg = _load(args)

    from .agent import ClockError, HostAgent
    from .collector.source import HostSource
    from .exporter import create_exporter
    from .supervisor.guard import CorruptOwnershipRecord, SingletonGuard
    from .supervisor.watchdog import StopSwitch

    guard = SingletonGuard(cfg.pid_file)
    try:
        result = guard.check()
    except CorruptOwnershipRecord as exc:
        logger.error("%s; removed it, restart the agent to recreate it", exc)
        return 1
    except OSError:
        logger.exception("Cannot access ownership record %s", cfg.pid_file)
        return 1

    if not result.is_owner:
        logger.info("Deferring to running agent (pid %d)", result.owner_pid)
        return 0

    try:
        agent = HostAgent(
            source=HostSource(cfg.collector),
            exporter=create_exporter(cfg),
            stop_switch=StopSwitch(cfg.stop_file),
            host=socket.gethostname(),
            interval=cfg.agent.interval,
            component=cfg.agent.component,
        )
        agent.run()
    except (ClockError, OSError):
        logger.exception("Agent stopped on a fatal error")
        return 1
    guard.release(result.owner_pid)
    logger.info("Agent stopped")
    return 0


def _read_owner_quietly(cfg: HostAgentConfig) -> str:
    try:
        return cfg.pid_file.read_text(encoding="ascii", errors="replace").strip()
    except FileNotFoundError:
        return ""


def _cmd_status(args: argparse.Namespace) -> int:
    """Print ownership, stop marker and sink state."""
    cfg = _load(args)

    import psutil
    from rich.console import Console
    from rich.table import Table

    owner = _read_owner_quietly(cfg)
    if not owner:
        owner_state = "no ownership record"
    elif owner.isdecimal():
        owner_state = "running" if psutil.pid_exists(int(owner)) else "not running (stale)"
    else:
        owner_state = "[red]corrupt[/red]"

    table = Table(title="host-agent status", show_lines=True)
    table.add_column("Item", style="cyan", width=18)
    table.add_column("Value", style="green")
    table.add_row("Ownership record", str(cfg.pid_file))
    table.add_row("Owner pid", owner or "-")
    table.add_row("Owner state", owner_state)
    table.add_row("Stop requested", "yes" if cfg.stop_file.exists() else "no")
    table.add_row("Interval", f"{cfg.agent.interval}s")
    table.add_row("Log type", cfg.agent.log_type)
    if cfg.agent.log_type == "file":
        size = cfg.log_file.stat().st_size if cfg.log_file.exists() else 0
        table.add_row("Log file", f"{cfg.log_file} ({size} bytes)")
    elif cfg.agent.log_type == "udp":
        table.add_row("Destination", f"{cfg.udp.host}:{cfg.udp.port}")
    else:
        table.add_row("Endpoint", cfg.otel.endpoint)

    Console().print(table)
    return 0


def _cmd_stop(args: argparse.Namespace) -> int:
    """Ask the running agent to stop after its current interval."""
    cfg = _load(args)

    import psutil

    from .supervisor.watchdog import StopSwitch

    owner = _read_owner_quietly(cfg)
    if not (owner.isdecimal() and psutil.pid_exists(int(owner))):
        # a marker left behind would stop the next agent after one interval
        print(f"No running agent recorded in {cfg.pid_file}; nothing to stop")
        return 0

    StopSwitch(cfg.stop_file).request()
    print(f"Stop requested ({cfg.stop_file}); the agent exits after its current interval")
    return 0


def _cmd_version(_args: argparse.Namespace) -> int:
    print(f"host_agent {__version__}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for the host-agent CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="host-agent",
        description="Sample host CPU, memory and network usage and report interval summaries",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to host_agent.yaml")
    sub = parser.add_subparsers(dest="command")

    startup_p = sub.add_parser("startup", help="Write a one-shot startup record and exit")
    startup_p.set_defaults(func=_cmd_startup)

    agent_p = sub.add_parser("agent", help="Run the sampling loop (one instance per host)")
    agent_p.set_defaults(func=_cmd_agent)

    status_p = sub.add_parser("status", help="Show the ownership record and sink state")
    status_p.set_defaults(func=_cmd_status)

    stop_p = sub.add_parser("stop", help="Ask the running agent to stop")
    stop_p.set_defaults(func=_cmd_stop)

    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        code = args.func(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        code = 1
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
