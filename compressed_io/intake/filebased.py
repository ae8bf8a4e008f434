"""
File-based sources and readers.

A FileBasedSource is either:
  - a file pattern (Mode.FILEPATTERN): expands to every matching file and
    splits into one or more bundles per file, or
  - a single file or byte range of one (Mode.SINGLE_FILE_OR_SUBRANGE):
    read by one FileBasedReader.

Format-specific subclasses only say how to build a subrange source and a
reader; pattern expansion, splitting and offset bookkeeping live here.

Readers follow a fixed life cycle:
    start() -> advance()* -> close()
start() opens the file channel, hands it to start_reading() and reads the
first record. The channel is owned by the reader and released on every exit
path, including failures during start().
"""

from __future__ import annotations

import glob
import logging
import os
import sys
from abc import ABC, abstractmethod
from contextlib import ExitStack
from enum import Enum
from typing import Any, BinaryIO, Iterator, List, Optional

from ..config import ReadOptions
from ..dto import FileMetadata
from ..errors import ConfigurationError, NoSuchElementError, UnsupportedOperationError
from ..ports import Coder, SourceReaderPort

logger = logging.getLogger(__name__)

# Sentinel for "until the end of the file" / "never split automatically"
OFFSET_INFINITY = sys.maxsize


class Mode(Enum):
    FILEPATTERN = "filepattern"
    SINGLE_FILE_OR_SUBRANGE = "single_file_or_subrange"


def expand_file_pattern(spec: str) -> List[FileMetadata]:
    """Matching files in sorted order; directories are skipped."""
    files: List[FileMetadata] = []
    for path in sorted(glob.glob(spec)):
        if not os.path.isfile(path):
            continue
        files.append(FileMetadata(path=path, size_bytes=os.path.getsize(path)))
    return files


def open_channel(path: str) -> BinaryIO:
    """Open one file for sequential binary reads."""
    return open(path, "rb")


def _fmt_offset(offset: int) -> str:
    return "inf" if offset == OFFSET_INFINITY else str(offset)


class FileBasedSource(ABC):
    """
    Base class for sources reading one file, a range of one file, or every
    file matching a glob pattern.

    Parameters
    ----------
    file_or_pattern_spec : str
        Path or glob pattern.
    min_bundle_size : int
        Lower bound on bundle size when splitting.
    start_offset, end_offset : int
        Byte range [start_offset, end_offset) of a single file. Leaving
        end_offset as None means pattern mode.
    """

    def __init__(
        self,
        file_or_pattern_spec: str,
        min_bundle_size: int = 1,
        start_offset: int = 0,
        end_offset: Optional[int] = None,
    ) -> None:
        self._file_or_pattern_spec = file_or_pattern_spec
        self._min_bundle_size = min_bundle_size
        self._start_offset = start_offset
        if end_offset is None:
            self._mode = Mode.FILEPATTERN
            self._end_offset = OFFSET_INFINITY
        else:
            self._mode = Mode.SINGLE_FILE_OR_SUBRANGE
            self._end_offset = end_offset

    # --- properties ---

    @property
    def file_or_pattern_spec(self) -> str:
        return self._file_or_pattern_spec

    @property
    def min_bundle_size(self) -> int:
        return self._min_bundle_size

    @property
    def start_offset(self) -> int:
        return self._start_offset

    @property
    def end_offset(self) -> int:
        return self._end_offset

    @property
    def mode(self) -> Mode:
        return self._mode

    def __repr__(self) -> str:
        if self._mode is Mode.FILEPATTERN:
            return f"<{type(self).__name__} pattern='{self._file_or_pattern_spec}'>"
        return (
            f"<{type(self).__name__} file='{self._file_or_pattern_spec}' "
            f"range=[{self._start_offset}, {_fmt_offset(self._end_offset)})>"
        )

    # --- validation ---

    def validate(self) -> None:
        """Raise ConfigurationError if this source cannot be read as configured."""
        if not self._file_or_pattern_spec:
            raise ConfigurationError("File or pattern spec must not be empty.")
        if self._min_bundle_size < 1:
            raise ConfigurationError(
                f"min_bundle_size must be positive, got {self._min_bundle_size}."
            )
        if self._mode is Mode.FILEPATTERN:
            if not expand_file_pattern(self._file_or_pattern_spec):
                raise ConfigurationError(
                    f"No files match pattern '{self._file_or_pattern_spec}'."
                )
        else:
            if self._start_offset < 0:
                raise ConfigurationError(
                    f"start_offset must be non-negative, got {self._start_offset}."
                )
            if self._end_offset < self._start_offset:
                raise ConfigurationError(
                    f"end_offset {self._end_offset} is before "
                    f"start_offset {self._start_offset}."
                )

    # --- splitting ---

    def is_splittable(self) -> bool:
        """Whether one file may be read as several independent byte ranges."""
        return True

    def get_max_end_offset(self) -> int:
        """End of the readable range, clipped to the file size."""
        if self._mode is Mode.FILEPATTERN:
            raise UnsupportedOperationError("Pattern sources have no single end offset.")
        size = os.path.getsize(self._file_or_pattern_spec)
        return min(self._end_offset, size)

    def get_estimated_size_bytes(self, options: Optional[ReadOptions] = None) -> int:
        if self._mode is Mode.FILEPATTERN:
            return sum(f.size_bytes for f in expand_file_pattern(self._file_or_pattern_spec))
        return max(0, self.get_max_end_offset() - self._start_offset)

    def split_into_bundles(
        self, desired_bundle_size_bytes: int, options: Optional[ReadOptions] = None
    ) -> List["FileBasedSource"]:
        """
        Split into sources that can be read independently and in parallel.
        Pattern mode yields at least one bundle per matching file.
        """
        if self._mode is Mode.FILEPATTERN:
            bundles: List[FileBasedSource] = []
            for f in expand_file_pattern(self._file_or_pattern_spec):
                sub = self.create_for_subrange_of_file(f.path, 0, OFFSET_INFINITY)
                bundles.extend(sub.split_into_bundles(desired_bundle_size_bytes, options))
            logger.info(
                "Split pattern '%s' into %d bundle(s).",
                self._file_or_pattern_spec, len(bundles),
            )
            return bundles

        if not self.is_splittable():
            return [self]

        chunk = max(desired_bundle_size_bytes, self._min_bundle_size)
        end = self.get_max_end_offset()
        bundles = []
        start = self._start_offset
        while start < end:
            stop = min(start + chunk, end)
            bundles.append(self.create_for_subrange_of_file(self._file_or_pattern_spec, start, stop))
            start = stop
        return bundles or [self]

    # --- readers ---

    def create_reader(self, options: Optional[ReadOptions] = None) -> SourceReaderPort:
        if self._mode is Mode.FILEPATTERN:
            return FilePatternReader(self, options)
        return self.create_single_file_reader(options)

    def produces_sorted_keys(self, options: Optional[ReadOptions] = None) -> bool:
        return False

    @abstractmethod
    def create_for_subrange_of_file(
        self, file_name: str, start: int, end: int
    ) -> "FileBasedSource":
        """Source for byte range [start, end) of one file."""

    @abstractmethod
    def create_single_file_reader(
        self, options: Optional[ReadOptions] = None
    ) -> "FileBasedReader":
        """Reader for the file (or range) this source stands for."""

    @abstractmethod
    def get_default_output_coder(self) -> Coder:
        """Coder for records produced by this source."""


class FileBasedReader(ABC):
    """
    Reader for one file or byte range of one file.

    Subclasses implement the hooks start_reading, read_next_record,
    get_current and get_current_offset. A record that is a split point and
    starts at or beyond the source's end_offset belongs to the next range,
    so reading stops there.
    """

    def __init__(self, source: FileBasedSource) -> None:
        self._source = source
        self._closer = ExitStack()
        self._started = False
        self._done = False
        self.closed = False

    @property
    def current_source(self) -> FileBasedSource:
        return self._source

    def __repr__(self) -> str:
        return f"<{type(self).__name__} source={self._source!r}{' [closed]' if self.closed else ''}>"

    # --- life cycle ---

    def start(self) -> bool:
        """Open the channel, hand it to start_reading and read the first record."""
        if self._started:
            raise UnsupportedOperationError(f"{self!r} was already started.")
        self._started = True
        path = self._source.file_or_pattern_spec
        logger.debug("Opening '%s' for %r.", path, self)
        try:
            channel = self._closer.enter_context(open_channel(path))
            self.start_reading(channel)
            return self.advance()
        except Exception:
            self.close()
            raise

    def advance(self) -> bool:
        """Move to the next record within range. False once exhausted."""
        if self._done:
            return False
        if not self.read_next_record():
            self._done = True
            return False
        if self.is_at_split_point() and self.get_current_offset() >= self._source.end_offset:
            self._done = True
            return False
        return True

    def close(self) -> None:
        if not self.closed:
            logger.debug("Closing %r.", self)
            self.closed = True
            self._closer.close()

    def __enter__(self) -> "FileBasedReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator[Any]:
        with self:
            available = self.start()
            while available:
                yield self.get_current()
                available = self.advance()

    # --- hooks ---

    def is_at_split_point(self) -> bool:
        """Whether the current record is a split point. Every record, by default."""
        return True

    @abstractmethod
    def start_reading(self, channel: BinaryIO) -> None:
        """Prepare to read from the channel; position at the range start."""

    @abstractmethod
    def read_next_record(self) -> bool:
        """Read the next record; False if there is none."""

    @abstractmethod
    def get_current(self) -> Any:
        """Current record; NoSuchElementError if there is none."""

    @abstractmethod
    def get_current_offset(self) -> int:
        """Byte offset of the current record."""


class FilePatternReader:
    """Reads every file matched by a pattern-mode source, one at a time, in order."""

    def __init__(self, source: FileBasedSource, options: Optional[ReadOptions] = None) -> None:
        self._source = source
        self._options = options
        self._files: Iterator[FileMetadata] = iter(())
        self._reader: Optional[FileBasedReader] = None
        self.closed = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} source={self._source!r}>"

    def start(self) -> bool:
        self._files = iter(expand_file_pattern(self._source.file_or_pattern_spec))
        return self._next_file()

    def advance(self) -> bool:
        if self._reader is None:
            return False
        if self._reader.advance():
            return True
        return self._next_file()

    def _next_file(self) -> bool:
        """Close the current reader and start readers until one has a record."""
        while True:
            if self._reader is not None:
                self._reader.close()
                self._reader = None
            f = next(self._files, None)
            if f is None:
                return False
            sub = self._source.create_for_subrange_of_file(f.path, 0, OFFSET_INFINITY)
            self._reader = sub.create_single_file_reader(self._options)
            if self._reader.start():
                return True

    def get_current(self) -> Any:
        if self._reader is None:
            raise NoSuchElementError("No current record.")
        return self._reader.get_current()

    def get_current_offset(self) -> int:
        if self._reader is None:
            raise NoSuchElementError("No current record.")
        return self._reader.get_current_offset()

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        self.closed = True

    def __enter__(self) -> "FilePatternReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator[Any]:
        with self:
            available = self.start()
            while available:
                yield self.get_current()
                available = self.advance()
