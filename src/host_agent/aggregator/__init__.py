"""Folding per-second snapshots into interval summaries."""

from .accumulator import IntervalAccumulator
from .record import SummaryRecord

__all__ = ["IntervalAccumulator", "SummaryRecord"]
