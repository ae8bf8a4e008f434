"""
Compressed source: reads compressed files through an inner file-based source.

A CompressedSource wraps a FileBasedSource that understands the
*decompressed* format (for example TextSource) and a decompression strategy:

    source = CompressedSource.from_source(TextSource("logs/*.txt.gz"))
    source = source.with_decompression(CompressionMode.BZIP2)

By default the strategy is chosen per file from its name: ".gz" means gzip,
".bz2" means bzip2, anything else is read uncompressed.

Compressed streams can only be decoded from their first byte, so a
compressed file is never split: is_splittable() is False, min_bundle_size
is OFFSET_INFINITY and subranges must start at offset 0.
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Optional

from .config import ReadOptions
from .errors import ConfigurationError, UnsupportedOperationError
from .intake.decompress import DecompressAccordingToFilename
from .intake.filebased import OFFSET_INFINITY, FileBasedReader, FileBasedSource
from .ports import Coder, DecompressingChannelFactory, FileNameBasedDecompressingChannelFactory

logger = logging.getLogger(__name__)


def _check_start_offset(start: int) -> None:
    if start != 0:
        raise ConfigurationError(
            "CompressedSources must start reading at offset 0. "
            f"Requested offset: {start}"
        )


class CompressedSource(FileBasedSource):
    """
    FileBasedSource over compressed files, delegating format parsing.

    Parameters
    ----------
    source_delegate : FileBasedSource
        Source able to read the decompressed content.
    channel_factory : DecompressingChannelFactory
        Strategy producing decompressed channels. Shared by all readers and
        never mutated.
    file_or_pattern_spec, start_offset, end_offset
        Set only for single-file sources made by create_for_subrange_of_file.
    """

    def __init__(
        self,
        source_delegate: FileBasedSource,
        channel_factory: DecompressingChannelFactory,
        *,
        file_or_pattern_spec: Optional[str] = None,
        start_offset: int = 0,
        end_offset: Optional[int] = None,
    ) -> None:
        if end_offset is not None:
            _check_start_offset(start_offset)
        if file_or_pattern_spec is None:
            file_or_pattern_spec = (
                source_delegate.file_or_pattern_spec if source_delegate is not None else ""
            )
        super().__init__(file_or_pattern_spec, OFFSET_INFINITY, start_offset, end_offset)
        self._source_delegate = source_delegate
        self._channel_factory = channel_factory

    @classmethod
    def from_source(cls, source_delegate: FileBasedSource) -> "CompressedSource":
        """Compressed source choosing the decompression from each file name."""
        return cls(source_delegate, DecompressAccordingToFilename())

    def with_decompression(
        self, channel_factory: DecompressingChannelFactory
    ) -> "CompressedSource":
        """Like this source, but decompressing with channel_factory. self is unchanged."""
        return CompressedSource(self._source_delegate, channel_factory)

    @property
    def source_delegate(self) -> FileBasedSource:
        return self._source_delegate

    @property
    def channel_factory(self) -> DecompressingChannelFactory:
        return self._channel_factory

    def validate(self) -> None:
        if self._source_delegate is None:
            raise ConfigurationError("CompressedSource requires a source delegate.")
        self._source_delegate.validate()
        if self._channel_factory is None:
            raise ConfigurationError("CompressedSource requires a decompression strategy.")
        super().validate()

    def is_splittable(self) -> bool:
        return False

    def create_for_subrange_of_file(
        self, file_name: str, start: int, end: int
    ) -> "CompressedSource":
        _check_start_offset(start)
        return CompressedSource(
            self._source_delegate.create_for_subrange_of_file(file_name, start, end),
            self._channel_factory,
            file_or_pattern_spec=file_name,
            start_offset=start,
            end_offset=end,
        )

    def create_single_file_reader(
        self, options: Optional[ReadOptions] = None
    ) -> "CompressedReader":
        return CompressedReader(self, self._source_delegate.create_single_file_reader(options))

    def produces_sorted_keys(self, options: Optional[ReadOptions] = None) -> bool:
        return self._source_delegate.produces_sorted_keys(options)

    def get_default_output_coder(self) -> Coder:
        return self._source_delegate.get_default_output_coder()


class CompressedReader(FileBasedReader):
    """
    Decompresses its channel once and reads records through a delegate reader.

    The delegate sees only decompressed bytes, so offsets reported here are
    offsets in the decompressed stream.
    """

    def __init__(self, source: CompressedSource, reader_delegate: FileBasedReader) -> None:
        super().__init__(source)
        self._reader_delegate = reader_delegate
        self._records_read = 0
        self._decompressing = False

    @property
    def records_read(self) -> int:
        return self._records_read

    def start_reading(self, channel: BinaryIO) -> None:
        if self._decompressing:
            raise UnsupportedOperationError(f"{self!r} already decompressed its channel.")
        self._decompressing = True
        source = self.current_source
        factory = source.channel_factory
        logger.debug("Decompressing '%s' with %r.", source.file_or_pattern_spec, factory)
        if isinstance(factory, FileNameBasedDecompressingChannelFactory):
            decompressed = factory.create_decompressing_channel_for_file(
                source.file_or_pattern_spec, channel
            )
        else:
            decompressed = factory.create_decompressing_channel(channel)
        if decompressed is not channel:
            # closed before the raw channel it reads from
            self._closer.callback(decompressed.close)
        self._reader_delegate.start_reading(decompressed)

    def read_next_record(self) -> bool:
        if not self._reader_delegate.read_next_record():
            return False
        self._records_read += 1
        return True

    def is_at_split_point(self) -> bool:
        # True for the first record only: not before it, not after any later
        # one. The stream cannot be split, but the first record of any reader
        # still has to count as a split point.
        return self._records_read == 1

    def get_current(self) -> Any:
        return self._reader_delegate.get_current()

    def get_current_offset(self) -> int:
        return self._reader_delegate.get_current_offset()

    def close(self) -> None:
        self._reader_delegate.close()
        super().close()
