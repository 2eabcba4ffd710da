"""Input record streams.

Records arrive either as JSON Lines (one object per line) or as a stream of
concatenated MessagePack maps. An empty record (``{}`` or ``null``) marks the
end of data and stops the stream, so a producer can signal completion
without closing its end of a pipe.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Callable, Iterator

import msgpack

from ..records.codec import DecodeError

logger = logging.getLogger(__name__)

STDIO = "-"
MSGPACK_READ_SIZE = 64 * 1024

InvalidRecordHandler = Callable[[DecodeError], None]


@contextmanager
def open_source(source: str | Path | IO[Any], binary: bool) -> Iterator[IO[Any]]:
    """Open an input source.

    Args:
        source: File path, ``"-"`` for stdin, or an already open file object
            (left open on exit).
        binary: Whether the stream is read as bytes.

    Yields:
        Readable file object.
    """
    if not isinstance(source, (str, Path)):
        yield source
        return

    if str(source) == STDIO:
        yield sys.stdin.buffer if binary else sys.stdin
        return

    path = Path(source)
    if binary:
        with path.open("rb") as f:
            yield f
    else:
        with path.open("r", encoding="utf-8") as f:
            yield f


def _is_end_marker(record: Any) -> bool:
    return record is None or record == {}


def _reject(error: DecodeError, on_invalid: InvalidRecordHandler | None) -> None:
    if on_invalid is None:
        raise error
    on_invalid(error)


def iter_jsonl(
    stream: IO[str],
    on_invalid: InvalidRecordHandler | None = None,
) -> Iterator[dict[str, Any]]:
    """Yield records from a JSON Lines text stream.

    Args:
        stream: Text stream, one JSON object per line. Blank lines are skipped.
        on_invalid: Called with a DecodeError for each line that is not a
            JSON object; the line is then skipped. Without a handler the
            error is raised.
    """
    for line_number, line in enumerate(stream, start=1):
        text = line.strip()
        if not text:
            continue
        try:
            record = json.loads(text)
        except json.JSONDecodeError as e:
            _reject(DecodeError(f"Line {line_number}: invalid JSON: {e.msg}"), on_invalid)
            continue
        if _is_end_marker(record):
            logger.debug("End-of-data marker at line %d", line_number)
            return
        if not isinstance(record, dict):
            _reject(
                DecodeError(f"Line {line_number}: expected a JSON object, got {type(record).__name__}"),
                on_invalid,
            )
            continue
        yield record


def iter_msgpack(
    stream: IO[bytes],
    on_invalid: InvalidRecordHandler | None = None,
) -> Iterator[dict[str, Any]]:
    """Yield records from a stream of MessagePack maps.

    Args:
        stream: Binary stream of concatenated MessagePack objects.
        on_invalid: Called with a DecodeError for each message that is not
            a map; the message is then skipped.

    Raises:
        DecodeError: If the stream itself is corrupt or ends part-way
            through a message. A corrupt stream cannot be resynchronised, so
            this is raised even with a handler.
    """
    unpacker = msgpack.Unpacker(raw=False, strict_map_key=False)
    read = getattr(stream, "read1", stream.read)
    received = 0
    index = 0
    while True:
        chunk = read(MSGPACK_READ_SIZE)
        if not chunk:
            if unpacker.tell() < received:
                raise DecodeError(f"Message {index + 1}: truncated")
            return
        received += len(chunk)
        try:
            unpacker.feed(chunk)
        except msgpack.BufferFull as e:
            raise DecodeError(f"Message {index + 1}: exceeds the unpacker buffer") from e

        while True:
            try:
                record = next(unpacker)
            except StopIteration:
                break
            except (msgpack.FormatError, msgpack.StackError, ValueError) as e:
                raise DecodeError(f"Message {index + 1}: cannot unpack: {e}") from e

            index += 1
            if _is_end_marker(record):
                logger.debug("End-of-data marker at message %d", index)
                return
            if not isinstance(record, dict):
                _reject(DecodeError(f"Message {index}: expected a map, got {type(record).__name__}"), on_invalid)
                continue
            yield record


def iter_records(
    source: str | Path | IO[Any],
    fmt: str = "jsonl",
    on_invalid: InvalidRecordHandler | None = None,
) -> Iterator[dict[str, Any]]:
    """Iterate over raw records from a source.

    Args:
        source: File path, ``"-"`` for stdin, or an open file object.
        fmt: ``"jsonl"`` or ``"msgpack"``.
        on_invalid: Handler for records that cannot be parsed.

    Yields:
        One mapping of field name to raw value per record.

    Raises:
        ValueError: If the format is unknown.
    """
    if fmt == "jsonl":
        with open_source(source, binary=False) as stream:
            yield from iter_jsonl(stream, on_invalid)
    elif fmt == "msgpack":
        with open_source(source, binary=True) as stream:
            yield from iter_msgpack(stream, on_invalid)
    else:
        raise ValueError(f"Unknown input format: {fmt}")
