"""
Data Transfer Objects (DTOs) shared across the read path.

Small, immutable, and independent of any codec or file-format library.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


# === Intake ===
@dataclass(frozen=True)
class FileMetadata:
    """One physical file matched by a file spec."""
    path: str
    size_bytes: int


# === Orchestration ===
@dataclass(frozen=True)
class ReadSummary:
    """Outcome of one `run_read` call."""
    bundles: int
    records: int
    # per-bundle record counts, in bundle order
    records_per_bundle: Dict[str, int] = field(default_factory=dict)

    def as_metrics(self) -> Dict[str, int]:
        return {"bundles": self.bundles, "records": self.records}
