"""Tests for the file, datagram and OpenTelemetry sinks."""

import json
import socket

import pytest
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from host_agent.aggregator.record import SummaryRecord
from host_agent.config import HostAgentConfig, OtelExporterConfig
from host_agent.exporter import DatagramExporter, FileExporter, create_exporter
from host_agent.exporter import udp as udp_mod
from host_agent.exporter.otel import OtelExporter


def _record(cpu_avg: float = 42.5, timestamp: int = 1_700_000_100) -> SummaryRecord:
    return SummaryRecord(
        host="web-01", component="agent", timestamp=timestamp, uptime=3600,
        agent_started=1_700_000_000, interval=5, sample_count=5,
        cpu_avg=cpu_avg, cpu_min=1.0, cpu_max=90.0,
        mem_avg=50.0, mem_min=49.0, mem_max=51.0,
        net_rx_delta=1024, net_tx_delta=2048,
    )


class TestFileExporter:

    def test_appends_one_json_line_per_record(self, tmp_path):
        path = tmp_path / "logs" / "hostagent_json.log"
        path.parent.mkdir()
        path.write_text('{"existing": true}\n')

        exporter = FileExporter(path)
        exporter.export(_record(cpu_avg=10.0))
        # flushed before export returns
        assert path.read_text().count("\n") == 2
        exporter.export(_record(cpu_avg=20.0))
        exporter.shutdown()

        lines = path.read_text().splitlines()
        assert len(lines) == 3
        assert json.loads(lines[0]) == {"existing": True}
        assert SummaryRecord.from_json(lines[1]).cpu_avg == 10.0
        assert SummaryRecord.from_json(lines[2]).cpu_avg == 20.0
        assert path.read_text().endswith("\n")

    def test_creates_missing_directory_and_file(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "agent.log"
        exporter = FileExporter(path)
        exporter.export(_record())
        exporter.shutdown()
        assert exporter.path == path
        assert SummaryRecord.from_json(path.read_text()) == _record()

    def test_rotation_reopens_file(self, tmp_path):
        path = tmp_path / "agent.log"
        exporter = FileExporter(path, max_bytes=50, rotate_mode="rename")
        exporter.export(_record(timestamp=1))
        exporter.maintain()
        assert not path.exists()
        assert (tmp_path / "agent.log.1").exists()

        exporter.export(_record(timestamp=2))
        exporter.shutdown()
        assert SummaryRecord.from_json(path.read_text()).timestamp == 2

    def test_truncate_rotation(self, tmp_path):
        path = tmp_path / "agent.log"
        exporter = FileExporter(path, max_bytes=50, rotate_mode="truncate")
        exporter.export(_record(timestamp=1))
        exporter.maintain()
        exporter.export(_record(timestamp=2))
        exporter.shutdown()
        lines = path.read_text().splitlines()
        assert len(lines) == 1
        assert SummaryRecord.from_json(lines[0]).timestamp == 2

    def test_write_failure_propagates(self, tmp_path):
        path = tmp_path / "agent.log"
        path.mkdir()  # cannot open a directory for appending
        exporter = FileExporter(path)
        with pytest.raises(OSError):
            exporter.export(_record())


class TestDatagramExporter:

    def test_sends_record_as_one_datagram(self):
        receiver = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        receiver.bind(("127.0.0.1", 0))
        receiver.settimeout(5)
        port = receiver.getsockname()[1]
        try:
            exporter = DatagramExporter("127.0.0.1", port)
            exporter.export(_record())
            data, _addr = receiver.recvfrom(65535)
            exporter.shutdown()
        finally:
            receiver.close()
        assert SummaryRecord.from_json(data) == _record()

    def test_resolves_before_every_send(self, monkeypatch):
        calls = []
        real_getaddrinfo = socket.getaddrinfo

        def fake_getaddrinfo(host, port, *args, **kwargs):
            calls.append(host)
            return real_getaddrinfo("127.0.0.1", port, *args, **kwargs)

        receiver = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        receiver.bind(("127.0.0.1", 0))
        receiver.settimeout(5)
        port = receiver.getsockname()[1]
        monkeypatch.setattr(udp_mod.socket, "getaddrinfo", fake_getaddrinfo)
        try:
            exporter = DatagramExporter("collector.example", port)
            exporter.export(_record(timestamp=1))
            exporter.export(_record(timestamp=2))
            received = [receiver.recvfrom(65535)[0] for _ in range(2)]
            exporter.shutdown()
        finally:
            receiver.close()
        assert calls == ["collector.example", "collector.example"]
        assert [SummaryRecord.from_json(d).timestamp for d in received] == [1, 2]

    def test_resolution_failure_is_fatal(self, monkeypatch):
        def failing_getaddrinfo(*args, **kwargs):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        monkeypatch.setattr(udp_mod.socket, "getaddrinfo", failing_getaddrinfo)
        exporter = DatagramExporter("does-not-exist.invalid", 5140)
        with pytest.raises(OSError):
            exporter.export(_record())
        exporter.shutdown()

    def test_send_failure_is_fatal(self, monkeypatch):
        exporter = DatagramExporter("127.0.0.1", 5140)

        class BrokenSocket:
            def sendto(self, payload, sockaddr):
                raise OSError("Network is unreachable")

            def close(self):
                pass

        monkeypatch.setattr(exporter, "_socket_for", lambda family: BrokenSocket())
        with pytest.raises(OSError, match="unreachable"):
            exporter.export(_record())
        exporter.shutdown()


class TestOtelExporter:

    def test_records_gauges(self):
        reader = InMemoryMetricReader()
        exporter = OtelExporter(OtelExporterConfig(service_name="test-agent"), reader=reader)
        exporter.export(_record())

        data = reader.get_metrics_data()
        points = {}
        for resource_metrics in data.resource_metrics:
            assert resource_metrics.resource.attributes["service.name"] == "test-agent"
            for scope_metrics in resource_metrics.scope_metrics:
                for metric in scope_metrics.metrics:
                    point = list(metric.data.data_points)[0]
                    points[metric.name] = (point.value, dict(point.attributes))
        exporter.shutdown()

        assert points["host.cpu.usage_percent.avg"][0] == 42.5
        assert points["host.network.rx_bytes"][0] == 1024
        assert points["host.network.tx_bytes"][0] == 2048
        assert points["host.cpu.usage_percent.avg"][1] == {"host": "web-01", "component": "agent"}


def test_create_exporter_selects_sink(tmp_path):
    cfg = HostAgentConfig()
    cfg.paths.root_folder = str(tmp_path)
    exporter = create_exporter(cfg)
    assert isinstance(exporter, FileExporter)
    assert exporter.path == tmp_path / "logs" / "hostagent_json.log"
    exporter.shutdown()

    cfg.agent.log_type = "udp"
    exporter = create_exporter(cfg)
    assert isinstance(exporter, DatagramExporter)
    exporter.shutdown()

    cfg.agent.log_type = "carrier-pigeon"
    with pytest.raises(ValueError):
        create_exporter(cfg)
