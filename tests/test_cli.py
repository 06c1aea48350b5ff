"""Tests for the host-agent command line."""

import json
import os

import pytest
import yaml

from host_agent import __version__
from host_agent.cli import main


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "host_agent.yaml"
    path.write_text(yaml.dump({
        "agent": {"interval": 1, "log_type": "file"},
        "paths": {"root_folder": str(tmp_path)},
    }))
    return path


def test_version(capsys):
    main(["version"])
    assert __version__ in capsys.readouterr().out


def test_no_command_exits_1():
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1


def test_startup_writes_single_record(tmp_path, config_path):
    main(["--config", str(config_path), "startup"])
    # a second run replaces the record instead of appending
    main(["--config", str(config_path), "startup"])

    lines = (tmp_path / "logs" / "startup_json.log").read_text().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["component"] == "startup"
    assert record["version"] == __version__
    assert record["root_folder"] == str(tmp_path)
    assert record["mem_total"] > 0
    assert record["timestamp"] >= record["boot_time"]


def test_invalid_config_exits_1(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.dump({"agent": {"interval": 0}, "paths": {"root_folder": str(tmp_path)}}))
    with pytest.raises(SystemExit) as exc:
        main(["--config", str(path), "agent"])
    assert exc.value.code == 1
    assert not (tmp_path / "bin" / ".agent.pid").exists()


def test_agent_defers_to_live_owner(tmp_path, config_path):
    pid_file = tmp_path / "bin" / ".agent.pid"
    pid_file.parent.mkdir()
    # the test runner itself is a live process
    pid_file.write_text(f"{os.getppid()}\n")

    main(["--config", str(config_path), "agent"])
    assert pid_file.read_text() == f"{os.getppid()}\n"
    assert not (tmp_path / "logs" / "hostagent_json.log").exists()


def test_agent_corrupt_record_exits_1(tmp_path, config_path):
    pid_file = tmp_path / "bin" / ".agent.pid"
    pid_file.parent.mkdir()
    pid_file.write_text("garbage\n")

    with pytest.raises(SystemExit) as exc:
        main(["--config", str(config_path), "agent"])
    assert exc.value.code == 1
    assert not pid_file.exists()


def test_agent_takes_over_stale_record_and_stops(tmp_path, config_path):
    pid_file = tmp_path / "bin" / ".agent.pid"
    pid_file.parent.mkdir()
    pid_file.write_text(f"{2 ** 31 - 2}\n")
    # stop after the first interval
    (tmp_path / "bin" / ".agent.stop").touch()

    main(["--config", str(config_path), "agent"])

    lines = (tmp_path / "logs" / "hostagent_json.log").read_text().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["component"] == "agent"
    assert record["sample_count"] == 1
    assert record["interval"] == 1
    # ownership is released on a cooperative stop
    assert not pid_file.exists()
    assert not (tmp_path / "bin" / ".agent.stop").exists()


def test_stop_creates_marker_for_running_agent(tmp_path, config_path, capsys):
    pid_file = tmp_path / "bin" / ".agent.pid"
    pid_file.parent.mkdir()
    pid_file.write_text(f"{os.getppid()}\n")
    main(["--config", str(config_path), "stop"])
    assert (tmp_path / "bin" / ".agent.stop").exists()
    assert "Stop requested" in capsys.readouterr().out


@pytest.mark.parametrize("record", [None, f"{2 ** 31 - 2}\n", "garbage\n"])
def test_stop_without_running_agent_leaves_no_marker(tmp_path, config_path, capsys, record):
    if record is not None:
        pid_file = tmp_path / "bin" / ".agent.pid"
        pid_file.parent.mkdir()
        pid_file.write_text(record)
    main(["--config", str(config_path), "stop"])
    assert not (tmp_path / "bin" / ".agent.stop").exists()
    assert "No running agent" in capsys.readouterr().out


def test_status_reports_stale_owner(tmp_path, config_path, capsys):
    pid_file = tmp_path / "bin" / ".agent.pid"
    pid_file.parent.mkdir()
    pid_file.write_text(f"{2 ** 31 - 2}\n")
    main(["--config", str(config_path), "status"])
    out = capsys.readouterr().out
    assert "stale" in out
    # status never repairs or deletes the record
    assert pid_file.exists()


def test_status_reports_corrupt_owner(tmp_path, config_path, capsys):
    pid_file = tmp_path / "bin" / ".agent.pid"
    pid_file.parent.mkdir()
    pid_file.write_text("garbage\n")
    main(["--config", str(config_path), "status"])
    assert "corrupt" in capsys.readouterr().out
    assert pid_file.exists()


def test_agent_udp_resolution_failure_exits_1(tmp_path, monkeypatch):
    import socket

    path = tmp_path / "udp.yaml"
    path.write_text(yaml.dump({
        "agent": {"interval": 1, "log_type": "udp"},
        "udp": {"host": "does-not-exist.invalid", "port": 5140},
        "paths": {"root_folder": str(tmp_path)},
    }))

    def failing_getaddrinfo(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", failing_getaddrinfo)
    with pytest.raises(SystemExit) as exc:
        main(["--config", str(path), "agent"])
    assert exc.value.code == 1
