"""Shared fixtures: compressed files on disk and a collecting sink."""

import bz2
import gzip
from typing import Dict, List

import pytest
import zstandard


def compress_for(name: str, data: bytes) -> bytes:
    """Compress data with the codec implied by the file suffix."""
    lower = name.lower()
    if lower.endswith(".gz"):
        return gzip.compress(data)
    if lower.endswith(".bz2"):
        return bz2.compress(data)
    if lower.endswith(".zst"):
        return zstandard.ZstdCompressor().compress(data)
    return data


@pytest.fixture
def write_file(tmp_path):
    """Write `data` to tmp_path/name, compressed according to its suffix unless raw=True."""

    def _write(name: str, data: bytes, *, raw: bool = False) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data if raw else compress_for(name, data))
        return str(path)

    return _write


class CollectingSink:
    def __init__(self) -> None:
        self.records: List[object] = []
        self.metrics: Dict[str, int] = {}

    def on_record(self, record) -> None:
        self.records.append(record)

    def on_metrics(self, metrics: Dict[str, int]) -> None:
        self.metrics = dict(metrics)


@pytest.fixture
def sink():
    return CollectingSink()
