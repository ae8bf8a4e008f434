"""
Configuration schema for compressed reads.

Two small, validated, immutable models:
- ReadOptions: knobs passed down to sources and readers (bundle sizing,
  worker count and read-ahead for `run_read`).
- LoggingConfig: log level and optional log file, overridable via
  environment variables.
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

_MIB = 1024 * 1024


class ReadOptions(BaseModel):
    """
    Options for one read. Shared by every reader created for it, so it must
    never be mutated after construction.
    """

    model_config = ConfigDict(frozen=True)

    # === Bundling ===
    desired_bundle_size_bytes: int = Field(
        default=64 * _MIB,
        ge=1,
        description="Target bundle size when splitting splittable files. "
        "Unsplittable (compressed) files always form a single bundle.",
    )

    # === Execution ===
    max_workers: int = Field(
        default=4,
        ge=1,
        description="Number of bundles read concurrently by run_read.",
    )
    max_buffered_records: int = Field(
        default=1024,
        ge=1,
        description="Records each in-flight bundle may read ahead of the sink "
        "before its worker waits.",
    )


class LoggingConfig(BaseModel):
    """Log level and destination for `init_logging`."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(
        default_factory=lambda: os.getenv("COMPRESSED_IO_LOG_LEVEL", "INFO"),
        description="Name of a stdlib logging level, case-insensitive.",
    )
    log_file: Optional[str] = Field(
        default_factory=lambda: os.getenv("COMPRESSED_IO_LOG_FILE") or None,
        description="If set, also log to this file with rotation.",
    )
    max_bytes: int = Field(default=1_000_000, ge=1)
    backup_count: int = Field(default=5, ge=0)
