"""OpenTelemetry exporter – pushes summary records via OTLP/HTTP."""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource

from ..aggregator.record import SummaryRecord
from ..config import OtelExporterConfig
from .base import BaseExporter

logger = logging.getLogger(__name__)

# record field -> (metric name, unit, description)
GAUGES = {
    "cpu_avg": ("host.cpu.usage_percent.avg", "%", "Average CPU usage over the interval"),
    "cpu_min": ("host.cpu.usage_percent.min", "%", "Minimum CPU usage over the interval"),
    "cpu_max": ("host.cpu.usage_percent.max", "%", "Maximum CPU usage over the interval"),
    "mem_avg": ("host.memory.usage_percent.avg", "%", "Average memory usage over the interval"),
    "mem_min": ("host.memory.usage_percent.min", "%", "Minimum memory usage over the interval"),
    "mem_max": ("host.memory.usage_percent.max", "%", "Maximum memory usage over the interval"),
    "net_rx_delta": ("host.network.rx_bytes", "bytes", "Bytes received during the interval"),
    "net_tx_delta": ("host.network.tx_bytes", "bytes", "Bytes sent during the interval"),
    "uptime": ("host.uptime", "s", "Host uptime at interval start"),
}


class OtelExporter(BaseExporter):
    """Exports summary records to an OpenTelemetry endpoint.

    Each call to :meth:`export` records gauge observations via the OTel SDK;
    the SDK's ``PeriodicExportingMetricReader`` flushes them to the configured
    OTLP/HTTP endpoint. Pass *reader* to collect somewhere else.
    """

    def __init__(self, config: OtelExporterConfig, reader: MetricReader | None = None) -> None:
        self._config = config
        resource = Resource.create({SERVICE_NAME: config.service_name})

        if reader is None:
            from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter

            exporter_kwargs: dict[str, Any] = {
                "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
            }
            if config.headers:
                exporter_kwargs["headers"] = config.headers
            reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(**exporter_kwargs),
                export_interval_millis=config.export_interval_ms,
            )

        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        self._meter = self._provider.get_meter("host_agent.summary")
        self._gauges = {
            field: self._meter.create_gauge(name=name, unit=unit, description=description)
            for field, (name, unit, description) in GAUGES.items()
        }

        logger.info(
            "OtelExporter initialized → %s (service=%s)",
            config.endpoint,
            config.service_name,
        )

    def export(self, record: SummaryRecord) -> None:
        attributes = {"host": record.host, "component": record.component}
        for field, gauge in self._gauges.items():
            gauge.set(getattr(record, field), attributes=attributes)

    def shutdown(self) -> None:
        self._provider.shutdown()
        logger.info("OtelExporter shut down")
