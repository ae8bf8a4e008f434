"""
compressed_io: transparent decompression for file-based batch reads.

Public API (stable):
- CompressedSource, CompressedReader  (compressed files over an inner source)
- CompressionMode, DecompressAccordingToFilename, ZSTD  (strategies)
- read_from_source, BoundedRead, run_read  (read entry point)
- FileBasedSource, FileBasedReader, TextSource  (file-based framework)
- ReadOptions, LoggingConfig, init_logging  (configuration, logging)
- Ports: DecompressingChannelFactory, RecordSinkPort
- Errors: ConfigurationError, CodecError, UnsupportedOperationError,
  NoSuchElementError

Usage:
    read = read_from_source(TextSource("data/*.txt.gz"))
    for line in read.iter_records():
        ...
"""

from __future__ import annotations

# Configuration
from .config import LoggingConfig, ReadOptions
from .utils import init_logging

# Core
from .compressed import CompressedReader, CompressedSource

# Strategies
from .intake.decompress import (
    ZSTD,
    CompressionMode,
    DecompressAccordingToFilename,
    ZstdDecompression,
    detect_compression,
)

# File-based framework
from .intake.filebased import OFFSET_INFINITY, FileBasedReader, FileBasedSource
from .intake.text import TextSource

# Entry point
from .read import BoundedRead, read_from_source, run_read

# Ports
from .ports import (
    DecompressingChannelFactory,
    FileNameBasedDecompressingChannelFactory,
    RecordSinkPort,
)

# Errors
from .errors import (
    CodecError,
    ConfigurationError,
    NoSuchElementError,
    UnsupportedOperationError,
)

# DTOs
from .dto import FileMetadata, ReadSummary

__all__ = [
    "LoggingConfig",
    "ReadOptions",
    "init_logging",
    "CompressedReader",
    "CompressedSource",
    "ZSTD",
    "CompressionMode",
    "DecompressAccordingToFilename",
    "ZstdDecompression",
    "detect_compression",
    "OFFSET_INFINITY",
    "FileBasedReader",
    "FileBasedSource",
    "TextSource",
    "BoundedRead",
    "read_from_source",
    "run_read",
    "DecompressingChannelFactory",
    "FileNameBasedDecompressingChannelFactory",
    "RecordSinkPort",
    "CodecError",
    "ConfigurationError",
    "NoSuchElementError",
    "UnsupportedOperationError",
    "FileMetadata",
    "ReadSummary",
]
