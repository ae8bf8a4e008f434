"""
Output coders for records produced by inner sources.

The compression layer never looks at these; it hands back whatever coder
its inner source declares.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Utf8Coder:
    """str <-> UTF-8 bytes."""

    errors: str = "strict"

    def encode(self, value: str) -> bytes:
        return value.encode("utf-8", self.errors)

    def decode(self, data: bytes) -> str:
        return data.decode("utf-8", self.errors)


@dataclass(frozen=True)
class BytesCoder:
    """Identity coder for raw byte records."""

    def encode(self, value: bytes) -> bytes:
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)
