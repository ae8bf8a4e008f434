"""
Read entry point and local orchestration.

- read_from_source(inner, strategy=None) -> BoundedRead
      Wraps an inner file-based source in a CompressedSource, ready to run.
- BoundedRead.iter_records(options)
      Sequential read of every bundle, in order.
- run_read(read, sink, options)
      Reads bundles on a thread pool and streams records to a RecordSinkPort.

Each bundle gets its own reader, used by exactly one worker thread. The
source and strategy are shared read-only. Workers hand records over through
bounded queues, so a large unsplittable file is never held in memory as a
whole. Records reach the sink on the calling thread, in bundle order.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import closing
from dataclasses import dataclass
from typing import Any, Deque, Iterator, List, Optional, Tuple

from .compressed import CompressedSource
from .config import ReadOptions
from .dto import ReadSummary
from .intake.filebased import FileBasedSource
from .ports import DecompressingChannelFactory, RecordSinkPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundedRead:
    """A configured, finite read over one source."""

    source: FileBasedSource

    def validate(self) -> None:
        self.source.validate()

    def split(self, options: Optional[ReadOptions] = None) -> List[FileBasedSource]:
        options = options or ReadOptions()
        return self.source.split_into_bundles(options.desired_bundle_size_bytes, options)

    def iter_records(self, options: Optional[ReadOptions] = None) -> Iterator[Any]:
        """Validate, split and read every bundle on this thread."""
        self.validate()
        for bundle in self.split(options):
            yield from bundle.create_reader(options)


def read_from_source(
    source_delegate: FileBasedSource,
    channel_factory: Optional[DecompressingChannelFactory] = None,
) -> BoundedRead:
    """
    Read `source_delegate` after decompressing each file.

    Without a channel_factory, the decompression is chosen from each file name.
    """
    source = CompressedSource.from_source(source_delegate)
    if channel_factory is not None:
        source = source.with_decompression(channel_factory)
    return BoundedRead(source)


_END = object()
_PUT_TIMEOUT = 0.1


def _put(feed: "queue.Queue[Any]", item: Any, stop: threading.Event) -> bool:
    """Put item on the feed, waiting for room. False once the run was stopped."""
    while not stop.is_set():
        try:
            feed.put(item, timeout=_PUT_TIMEOUT)
            return True
        except queue.Full:
            continue
    return False


def _read_bundle(
    bundle: FileBasedSource,
    options: ReadOptions,
    feed: "queue.Queue[Any]",
    stop: threading.Event,
) -> None:
    """Worker: stream one bundle's records into its feed, then the end marker."""
    logger.debug("Reading bundle %r.", bundle)
    try:
        with closing(bundle.create_reader(options)) as reader:
            for record in reader:
                if not _put(feed, record, stop):
                    break
    finally:
        _put(feed, _END, stop)


def _bundle_id(bundle: FileBasedSource) -> str:
    return f"{bundle.file_or_pattern_spec}@{bundle.start_offset}"


def run_read(
    read: BoundedRead,
    sink: RecordSinkPort,
    options: Optional[ReadOptions] = None,
) -> ReadSummary:
    """
    Execute one bounded read end to end.

    At most max_workers bundles are in flight, each holding at most
    max_buffered_records records not yet handed to the sink.

    Any error (configuration, codec, parsing) stops the run and propagates;
    records already forwarded to the sink are not retracted.
    """
    options = options or ReadOptions()
    read.validate()
    bundles = read.split(options)
    logger.info(
        "Reading %d bundle(s) with up to %d worker(s).", len(bundles), options.max_workers
    )

    records_per_bundle = {}
    total = 0
    stop = threading.Event()
    pending = iter(bundles)
    in_flight: Deque[Tuple[FileBasedSource, "queue.Queue[Any]", Future]] = deque()

    with ThreadPoolExecutor(max_workers=options.max_workers) as executor:

        def submit_next() -> None:
            bundle = next(pending, None)
            if bundle is None:
                return
            feed: "queue.Queue[Any]" = queue.Queue(maxsize=options.max_buffered_records)
            future = executor.submit(_read_bundle, bundle, options, feed, stop)
            in_flight.append((bundle, feed, future))

        try:
            for _ in range(options.max_workers):
                submit_next()
            # bundles are drained strictly in submission order
            while in_flight:
                bundle, feed, future = in_flight.popleft()
                count = 0
                while True:
                    record = feed.get()
                    if record is _END:
                        break
                    sink.on_record(record)
                    count += 1
                # re-raises whatever stopped the worker
                future.result()
                records_per_bundle[_bundle_id(bundle)] = count
                total += count
                submit_next()
        finally:
            stop.set()

    summary = ReadSummary(
        bundles=len(bundles), records=total, records_per_bundle=records_per_bundle
    )
    sink.on_metrics(summary.as_metrics())
    logger.info("Read %d record(s) from %d bundle(s).", total, len(bundles))
    return summary
