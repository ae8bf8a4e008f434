"""Unit tests for the CompressedReader state machine."""

import gzip
import io

import pytest

from compressed_io import (
    OFFSET_INFINITY,
    ZSTD,
    CodecError,
    CompressedReader,
    CompressedSource,
    CompressionMode,
    NoSuchElementError,
    TextSource,
    UnsupportedOperationError,
)


def single_file_reader(path, factory=None):
    source = CompressedSource.from_source(TextSource(path))
    if factory is not None:
        source = source.with_decompression(factory)
    sub = source.create_for_subrange_of_file(path, 0, OFFSET_INFINITY)
    return sub.create_single_file_reader()


class RecordingFactory:
    """Name-unaware strategy that counts its calls and passes bytes through."""

    def __init__(self):
        self.calls = 0

    def create_decompressing_channel(self, channel):
        self.calls += 1
        return channel


class RecordingNameFactory(RecordingFactory):
    """Name-aware strategy that remembers the file names it was given."""

    def __init__(self):
        super().__init__()
        self.names = []

    def create_decompressing_channel_for_file(self, file_name, channel):
        self.names.append(file_name)
        return channel


class TestExampleScenarios:
    def test_gzip_lines_and_split_points(self, write_file):
        reader = single_file_reader(write_file("data.txt.gz", b"a\nb\nc\n"))
        assert isinstance(reader, CompressedReader)
        with reader:
            assert reader.is_at_split_point() is False

            assert reader.start() is True
            assert reader.get_current() == "a"
            assert reader.is_at_split_point() is True

            assert reader.advance() is True
            assert reader.get_current() == "b"
            assert reader.is_at_split_point() is False

            assert reader.advance() is True
            assert reader.get_current() == "c"
            assert reader.is_at_split_point() is False

            assert reader.advance() is False
            assert reader.records_read == 3

    def test_plain_file_read_unmodified(self, write_file):
        reader = single_file_reader(write_file("data.txt", b"x\n"))
        assert list(reader) == ["x"]


class TestRecordCounting:
    def test_exhaustion_does_not_count(self, write_file):
        reader = single_file_reader(write_file("data.txt.gz", b"only\n"))
        with reader:
            assert reader.start() is True
            assert reader.records_read == 1
            assert reader.advance() is False
            assert reader.advance() is False
            assert reader.records_read == 1
            # still exactly one record read
            assert reader.is_at_split_point() is True

    def test_split_point_only_for_first_record(self, write_file):
        lines = b"".join(b"line %d\n" % i for i in range(10))
        reader = single_file_reader(write_file("many.txt.bz2", lines))
        flags = []
        with reader:
            available = reader.start()
            while available:
                flags.append(reader.is_at_split_point())
                available = reader.advance()
        assert flags == [True] + [False] * 9

    def test_empty_stream(self, write_file):
        reader = single_file_reader(write_file("empty.txt.gz", b""))
        with reader:
            assert reader.start() is False
            assert reader.is_at_split_point() is False


class TestDelegation:
    def test_offsets_are_in_decompressed_stream(self, write_file):
        reader = single_file_reader(write_file("data.txt.gz", b"a\nbb\nccc\n"))
        offsets = []
        with reader:
            available = reader.start()
            while available:
                offsets.append(reader.get_current_offset())
                available = reader.advance()
        assert offsets == [0, 2, 5]

    def test_get_current_before_first_record(self, write_file):
        reader = single_file_reader(write_file("data.txt.gz", b"a\n"))
        with pytest.raises(NoSuchElementError):
            reader.get_current()

    def test_get_current_after_exhaustion(self, write_file):
        reader = single_file_reader(write_file("data.txt.gz", b"a\n"))
        with reader:
            reader.start()
            reader.advance()
            with pytest.raises(NoSuchElementError):
                reader.get_current()

    def test_inner_parse_errors_propagate(self, write_file):
        reader = single_file_reader(write_file("bad.txt.gz", b"\xff\xfe\n"))
        with pytest.raises(UnicodeDecodeError):
            list(reader)


class TestStartReading:
    def test_name_unaware_strategy(self, write_file):
        factory = RecordingFactory()
        reader = single_file_reader(write_file("data.txt", b"x\ny\n"), factory)
        assert list(reader) == ["x", "y"]
        assert factory.calls == 1

    def test_name_aware_strategy_gets_file_name(self, write_file):
        path = write_file("data.txt", b"x\n")
        factory = RecordingNameFactory()
        assert list(single_file_reader(path, factory)) == ["x"]
        assert factory.names == [path]
        assert factory.calls == 0

    def test_explicit_gzip_ignores_file_name(self, write_file):
        path = write_file("data.bin", gzip.compress(b"p\nq\n"), raw=True)
        assert list(single_file_reader(path, CompressionMode.GZIP)) == ["p", "q"]

    def test_explicit_zstd(self, write_file):
        path = write_file("data.txt.zst", b"z1\nz2\n")
        assert list(single_file_reader(path, ZSTD)) == ["z1", "z2"]

    def test_zst_suffix_is_uncompressed_by_filename(self, write_file):
        path = write_file("raw.zst", b"p\n", raw=True)
        assert list(single_file_reader(path)) == ["p"]

    def test_decompresses_only_once(self, write_file):
        path = write_file("data.txt.gz", b"a\n")
        reader = single_file_reader(path)
        reader.start_reading(io.BytesIO(gzip.compress(b"a\n")))
        with pytest.raises(UnsupportedOperationError):
            reader.start_reading(io.BytesIO(gzip.compress(b"a\n")))
        reader.close()

    def test_malformed_file_fails_at_start(self, write_file):
        path = write_file("broken.txt.gz", b"this is not gzip\n", raw=True)
        reader = single_file_reader(path)
        with pytest.raises(CodecError):
            reader.start()
        assert reader.closed


def _lines(count):
    return b"".join(b"record %06d of the payload\n" % i for i in range(count))


def _write_cut_in_half(write_file, name, data):
    path = write_file(name, data)
    with open(path, "rb") as f:
        body = f.read()
    return write_file(name, body[: len(body) // 2], raw=True)


class TestTruncatedBody:
    """A compressed file cut short is an error, never a shorter file."""

    @pytest.mark.parametrize(
        "name,factory",
        [("t.txt.gz", None), ("t.txt.bz2", None), ("t.txt.zst", ZSTD)],
        ids=["gzip", "bzip2", "zstd"],
    )
    def test_raises_codec_error(self, write_file, name, factory):
        path = _write_cut_in_half(write_file, name, _lines(20000))
        reader = single_file_reader(path, factory)
        with pytest.raises(CodecError):
            list(reader)
        assert reader.closed

    def test_gzip_error_after_first_records(self, write_file):
        path = _write_cut_in_half(write_file, "t.txt.gz", _lines(20000))
        reader = single_file_reader(path)
        seen = []
        with pytest.raises(OSError):
            for record in reader:
                seen.append(record)
        assert seen[0] == "record 000000 of the payload"
        assert len(seen) < 20000
