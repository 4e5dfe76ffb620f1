"""Ingest package - sensor feed and history files.

This package handles:
- Pull-style access to a device feed (ReadingSource protocol)
- A seeded random-walk feed standing in for the AirCube device
- Reading and writing reading histories as CSV

Design principle:
- Sources produce HistoricalDataPoint objects stamped with acquisition time
- Missing sensor values stay None; nothing is interpolated or filled
"""

from .feed import INITIAL_READING, ReadingSource, SimulatedFeed
from .readers import read_history_csv, write_history_csv

__all__ = [
    "INITIAL_READING",
    "ReadingSource",
    "SimulatedFeed",
    "read_history_csv",
    "write_history_csv",
]
