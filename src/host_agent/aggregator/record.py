"""The per-interval summary record."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields


@dataclass
class SummaryRecord:
    """Summary statistics for one completed sampling interval."""

    host: str
    component: str
    timestamp: int
    uptime: int
    agent_started: int
    interval: int
    sample_count: int
    cpu_avg: float = 0.0
    cpu_min: float = 0.0
    cpu_max: float = 0.0
    mem_avg: float = 0.0
    mem_min: float = 0.0
    mem_max: float = 0.0
    net_rx_delta: int = 0
    net_tx_delta: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize as a single line of JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict) -> SummaryRecord:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_json(cls, text: str | bytes) -> SummaryRecord:
        return cls.from_dict(json.loads(text))
