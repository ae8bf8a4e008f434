"""
Interfaces (Ports) for the compressed read path.

These define the boundary between the core (compressed source/reader) and
its collaborators: codecs, inner format readers, coders and record sinks.
Keep them small and implementation-agnostic so they're easy to mock in tests.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Dict, Protocol, runtime_checkable


class DecompressingChannelFactory(Protocol):
    """
    Turns a channel of compressed bytes into a channel of decompressed bytes.
    Implementations may read ahead to validate a header; a malformed stream
    raises an OSError (CodecError) here, not on the first record.
    """

    def create_decompressing_channel(self, channel: BinaryIO) -> BinaryIO:
        ...


@runtime_checkable
class FileNameBasedDecompressingChannelFactory(DecompressingChannelFactory, Protocol):
    """
    Extended capability: pick the decompression from the file name as well.
    Only checked where a reader opens its channel; plain factories never
    need to implement it.
    """

    def create_decompressing_channel_for_file(
        self, file_name: str, channel: BinaryIO
    ) -> BinaryIO:
        ...


class Coder(Protocol):
    """Encodes output records to bytes and back."""

    def encode(self, value: Any) -> bytes:
        ...

    def decode(self, data: bytes) -> Any:
        ...


class SourceReaderPort(Protocol):
    """
    Record iteration over one source (or bundle).
    start() must be called once before advance(); both return False when
    no record is available.
    """

    def start(self) -> bool:
        ...

    def advance(self) -> bool:
        ...

    def get_current(self) -> Any:
        ...

    def close(self) -> None:
        ...


class RecordSinkPort(Protocol):
    """
    Receives records and metrics from `run_read`, always on the calling thread.
    """

    def on_record(self, record: Any) -> None:
        """Receive one record."""
        ...

    def on_metrics(self, metrics: Dict[str, int]) -> None:
        """Receive a metrics snapshot at the end of the run."""
        ...
