"""
Intake adapters: decompression strategies, file-based sources and readers,
and the line-based inner source.
"""

from __future__ import annotations

from .decompress import (
    ZSTD,
    CompressionMode,
    DecompressAccordingToFilename,
    ZstdDecompression,
    detect_compression,
)
from .filebased import (
    OFFSET_INFINITY,
    FileBasedReader,
    FileBasedSource,
    FilePatternReader,
    Mode,
    expand_file_pattern,
)
from .text import TextReader, TextSource
