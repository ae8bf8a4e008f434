"""
Decompression strategies.

A strategy turns a readable binary channel of compressed bytes into a
readable binary channel of decompressed bytes:

- CompressionMode.GZIP / CompressionMode.BZIP2: fixed codecs, each able to
  tell whether a file name implies it (case-insensitive suffix).
- DecompressAccordingToFilename: picks the first CompressionMode whose
  suffix matches the file name, in declaration order; no match means the
  file is read uncompressed.
- ZSTD: explicit-only zstandard strategy. It never takes part in filename
  dispatch, so `.zst` files pass through unless asked for.

Every decompressed channel reports codec failures as CodecError, whether
they happen at open or halfway through the body. Channels also peek at
the first decompressed byte when they are created, so a bad header fails
at open time instead of at the first record. This module does not parse
records; it only handles decompression.
"""

from __future__ import annotations

import bz2
import gzip
import io
import logging
import zlib
from enum import Enum
from typing import BinaryIO, Callable, Dict, Optional

import zstandard  # type: ignore

from ..errors import CodecError, UnsupportedOperationError

logger = logging.getLogger(__name__)

_CODEC_ERRORS = (OSError, EOFError, zlib.error, zstandard.ZstdError)


class _CodecReader(io.RawIOBase):
    """Raw view of a decompressing stream that raises CodecError on bad input."""

    def __init__(self, stream: BinaryIO, codec: str, name: str = "") -> None:
        self._stream = stream
        self._codec = codec
        self._name = name

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        try:
            return self._stream.readinto(b)
        except CodecError:
            raise
        except _CODEC_ERRORS as exc:
            where = f" in '{self._name}'" if self._name else ""
            raise CodecError(f"Could not decode {self._codec} stream{where}: {exc}") from exc

    def close(self) -> None:
        if not self.closed:
            try:
                self._stream.close()
            finally:
                super().close()


class _ZstdFrames(io.RawIOBase):
    """
    Zstandard frames decoded one after another from a channel.

    The channel running dry inside a frame is an error; between frames it
    is the normal end of the stream. The channel itself is left open.
    """

    def __init__(
        self,
        dctx: zstandard.ZstdDecompressor,
        channel: BinaryIO,
        read_size: int = io.DEFAULT_BUFFER_SIZE,
    ) -> None:
        self._dctx = dctx
        self._channel = channel
        self._read_size = read_size
        self._frame = None
        self._pending = b""
        self._exhausted = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._pending and not self._exhausted:
            self._fill()
        n = min(len(b), len(self._pending))
        b[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def _fill(self) -> None:
        data = self._channel.read(self._read_size)
        if not data:
            if self._frame is not None:
                raise EOFError("zstd stream ended before the end of its last frame")
            self._exhausted = True
            return
        while data:
            if self._frame is None:
                self._frame = self._dctx.decompressobj()
            self._pending += self._frame.decompress(data)
            if self._frame.eof:
                data = self._frame.unused_data
                self._frame = None
            else:
                data = b""


def _buffered(stream: BinaryIO, codec: str, name: str) -> BinaryIO:
    """Buffer a decompressing stream and read ahead far enough to parse its header."""
    buffered = io.BufferedReader(_CodecReader(stream, codec, name))
    try:
        buffered.peek(1)
    except CodecError:
        buffered.close()
        raise
    return buffered


def _open_gzip(channel: BinaryIO) -> BinaryIO:
    # GzipFile does not close a fileobj it was given
    return gzip.GzipFile(fileobj=channel, mode="rb")


def _open_bzip2(channel: BinaryIO) -> BinaryIO:
    # likewise, BZ2File leaves a passed-in file object open
    return bz2.BZ2File(channel, mode="rb")


_OPENERS: Dict[str, Callable[[BinaryIO], BinaryIO]] = {
    "gzip": _open_gzip,
    "bzip2": _open_bzip2,
}


class CompressionMode(Enum):
    """
    Built-in codecs, in the order filename dispatch tries them.

    Each member carries a registry label and the file suffix that implies it.
    """

    GZIP = ("gzip", ".gz")
    BZIP2 = ("bzip2", ".bz2")

    def __init__(self, label: str, suffix: str) -> None:
        self.label = label
        self.suffix = suffix

    def matches(self, file_name: str) -> bool:
        """True if the file name implies this compression."""
        return str(file_name).lower().endswith(self.suffix)

    def create_decompressing_channel(self, channel: BinaryIO) -> BinaryIO:
        stream = _OPENERS[self.label](channel)
        return _buffered(stream, self.label, getattr(channel, "name", ""))


def detect_compression(file_name: str) -> Optional[CompressionMode]:
    """First CompressionMode matching the file name, or None if uncompressed."""
    for mode in CompressionMode:
        if mode.matches(file_name):
            return mode
    return None


class DecompressAccordingToFilename:
    """
    Chooses the decompression from the file name. Files that match no
    CompressionMode are presumed uncompressed and returned as-is.

    Only the file-name-aware entry point is supported: without a name there
    is nothing to dispatch on, and guessing is not an option.
    """

    def create_decompressing_channel_for_file(
        self, file_name: str, channel: BinaryIO
    ) -> BinaryIO:
        mode = detect_compression(file_name)
        if mode is None:
            logger.debug("No compression suffix on '%s'; reading as uncompressed.", file_name)
            return channel
        logger.debug("Decompressing '%s' as %s.", file_name, mode.label)
        return mode.create_decompressing_channel(channel)

    def create_decompressing_channel(self, channel: BinaryIO) -> BinaryIO:
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support "
            "create_decompressing_channel(channel) but only "
            "create_decompressing_channel_for_file(file_name, channel)"
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ZstdDecompression:
    """Zstandard stream decompression (explicit use only)."""

    label = "zstd"
    suffix = ".zst"

    def matches(self, file_name: str) -> bool:
        return str(file_name).lower().endswith(self.suffix)

    def create_decompressing_channel(self, channel: BinaryIO) -> BinaryIO:
        frames = _ZstdFrames(zstandard.ZstdDecompressor(), channel)
        return _buffered(frames, self.label, getattr(channel, "name", ""))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


ZSTD = ZstdDecompression()
