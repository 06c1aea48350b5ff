"""Datagram exporter – fire-and-forget summary records over UDP."""

from __future__ import annotations

import logging
import socket

from ..aggregator.record import SummaryRecord
from .base import BaseExporter

logger = logging.getLogger(__name__)


class DatagramExporter(BaseExporter):
    """Sends each record as one UDP datagram to ``host:port``.

    The destination is resolved before every send so DNS changes are picked
    up without a restart. Delivery is not acknowledged or retried. A failed
    resolution or send raises ``OSError``; the agent stops and its
    supervisor restarts it.
    """

    def __init__(self, host: str, port: int) -> None:
        self._host = host
        self._port = port
        self._sockets: dict[int, socket.socket] = {}
        logger.info("DatagramExporter initialized → %s:%d", host, port)

    def resolve(self) -> tuple[int, tuple]:
        """Return ``(family, sockaddr)`` for the first address of the destination."""
        infos = socket.getaddrinfo(self._host, self._port, type=socket.SOCK_DGRAM)
        if not infos:
            raise OSError(f"no addresses found for {self._host}")
        family, _type, _proto, _canon, sockaddr = infos[0]
        return family, sockaddr

    def _socket_for(self, family: int) -> socket.socket:
        sock = self._sockets.get(family)
        if sock is None:
            sock = socket.socket(family, socket.SOCK_DGRAM)
            self._sockets[family] = sock
        return sock

    def export(self, record: SummaryRecord) -> None:
        payload = record.to_json().encode("utf-8")
        family, sockaddr = self.resolve()
        self._socket_for(family).sendto(payload, sockaddr)

    def shutdown(self) -> None:
        for sock in self._sockets.values():
            sock.close()
        self._sockets.clear()
        logger.info("DatagramExporter shut down")
