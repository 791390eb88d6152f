"""Persistence layer for CLIMB data snapshots."""

from climb.database.repository import (
    SnapshotRepository,
    StoreStats,
    load_snapshot_file,
)

__all__ = [
    "SnapshotRepository",
    "StoreStats",
    "load_snapshot_file",
]
