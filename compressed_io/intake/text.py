"""
Line reader: yields one record per newline-delimited line of a byte stream.

- Lines are decoded with the source's coder (UTF-8 by default).
- Trailing "\\n" / "\\r\\n" are stripped unless asked to keep them.
- Offsets are byte offsets of each line start in the stream handed to
  start_reading (for compressed files: the decompressed stream).
- A range that starts mid-file skips the partial line that began before it;
  that line belongs to the previous range.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Optional

from ..coders import Utf8Coder
from ..config import ReadOptions
from ..errors import NoSuchElementError
from ..ports import Coder
from .filebased import FileBasedReader, FileBasedSource

_NO_RECORD = object()


class TextSource(FileBasedSource):
    """
    Newline-delimited text file(s).

    Parameters
    ----------
    coder : Coder
        Decodes each line's bytes into a record.
    strip_trailing_newlines : bool
        Drop the line terminator from each record.
    """

    def __init__(
        self,
        file_or_pattern_spec: str,
        min_bundle_size: int = 1,
        start_offset: int = 0,
        end_offset: Optional[int] = None,
        *,
        coder: Optional[Coder] = None,
        strip_trailing_newlines: bool = True,
    ) -> None:
        super().__init__(file_or_pattern_spec, min_bundle_size, start_offset, end_offset)
        self._coder = coder if coder is not None else Utf8Coder()
        self._strip_trailing_newlines = strip_trailing_newlines

    @property
    def strip_trailing_newlines(self) -> bool:
        return self._strip_trailing_newlines

    def create_for_subrange_of_file(self, file_name: str, start: int, end: int) -> "TextSource":
        return TextSource(
            file_name,
            self.min_bundle_size,
            start,
            end,
            coder=self._coder,
            strip_trailing_newlines=self._strip_trailing_newlines,
        )

    def create_single_file_reader(self, options: Optional[ReadOptions] = None) -> "TextReader":
        return TextReader(self)

    def get_default_output_coder(self) -> Coder:
        return self._coder


class TextReader(FileBasedReader):
    """Reads lines from one channel."""

    def __init__(self, source: TextSource) -> None:
        super().__init__(source)
        self._channel: Optional[BinaryIO] = None
        self._current: Any = _NO_RECORD
        self._current_offset = -1
        self._next_offset = 0

    def start_reading(self, channel: BinaryIO) -> None:
        self._channel = channel
        start = self.current_source.start_offset
        if start > 0:
            # the line containing byte start-1 belongs to the previous range
            channel.seek(start - 1)
            skipped = channel.readline()
            self._next_offset = start - 1 + len(skipped)
        else:
            self._next_offset = 0

    def read_next_record(self) -> bool:
        line = self._channel.readline()
        if not line:
            self._current = _NO_RECORD
            return False
        self._current_offset = self._next_offset
        self._next_offset += len(line)
        if self.current_source.strip_trailing_newlines:
            line = _strip_newline(line)
        self._current = self.current_source.get_default_output_coder().decode(line)
        return True

    def get_current(self) -> Any:
        if self._current is _NO_RECORD:
            raise NoSuchElementError(f"{self!r} has no current record.")
        return self._current

    def get_current_offset(self) -> int:
        if self._current is _NO_RECORD:
            raise NoSuchElementError(f"{self!r} has no current record.")
        return self._current_offset


def _strip_newline(line: bytes) -> bytes:
    if line.endswith(b"\r\n"):
        return line[:-2]
    if line.endswith(b"\n"):
        return line[:-1]
    return line
