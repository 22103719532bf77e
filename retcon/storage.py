"""Disk-backed buffering of objects as length-prefixed records."""

from __future__ import annotations

import pickle
import struct
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import IO, Any

DEFAULT_BUFFER_SIZE = 1000

_PREFIX = struct.Struct("<I")

Encoder = Callable[[Any], bytes]
Decoder = Callable[[bytes], Any]


def _iter_records(stream: IO[bytes], decode: Decoder) -> Iterator[Any]:
    while True:
        header = stream.read(_PREFIX.size)
        if len(header) < _PREFIX.size:
            return
        (length,) = _PREFIX.unpack(header)
        data = stream.read(length)
        if len(data) < length:
            raise ValueError(f"Failed to read {length} bytes: unexpected end of file")
        try:
            item = decode(data)
        except Exception as exc:
            raise ValueError(f"Failed to decode item: {exc!r}") from exc
        yield item


def iter_records(stream: IO[bytes]) -> Iterator[Any]:
    """Yield decoded items from a stream of little-endian u32 length-prefixed records.

    A missing or incomplete length prefix ends the stream cleanly; a record
    shorter than its prefix or one that cannot be decoded raises ValueError.
    """
    return _iter_records(stream, pickle.loads)


class RecordReader:
    """Lazy iterator over the records of a binary stream."""

    def __init__(self, stream: IO[bytes], decode: Decoder = pickle.loads) -> None:
        self._stream = stream
        self._records = _iter_records(stream, decode)

    @classmethod
    def from_path(cls, file_path: str | Path) -> RecordReader:
        """Open a record file for reading."""
        return cls(open(file_path, "rb"))

    def __iter__(self) -> RecordReader:
        return self

    def __next__(self) -> Any:
        return next(self._records)

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> RecordReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ObjectBuffer:
    """Collects objects in memory and writes them to a file in batches.

    The file is truncated when the buffer is created and is opened for
    reading as well, so the written records can be read back.
    """

    def __init__(
        self,
        file_path: str | Path,
        capacity: int = DEFAULT_BUFFER_SIZE,
        *,
        encode: Encoder = pickle.dumps,
        decode: Decoder = pickle.loads,
    ) -> None:
        self._file: IO[bytes] | None = open(file_path, "w+b")
        self._capacity = capacity
        self._encode = encode
        self._decode = decode
        self._buffer: list[Any] = []

    @property
    def pending(self) -> int:
        """Number of items held in memory and not yet written."""
        return len(self._buffer)

    def _handle(self) -> IO[bytes]:
        if self._file is None:
            raise ValueError("buffer is closed")
        return self._file

    def add(self, item: Any) -> None:
        """Buffer an item, writing the batch out once capacity is reached."""
        self._handle()
        self._buffer.append(item)
        if len(self._buffer) >= self._capacity:
            self.flush()

    def flush(self) -> None:
        """Write every buffered item to the file."""
        handle = self._handle()
        for item in self._buffer:
            payload = self._encode(item)
            try:
                header = _PREFIX.pack(len(payload))
            except struct.error as exc:
                raise ValueError(f"item of {len(payload)} bytes is too large") from exc
            handle.write(header)
            handle.write(payload)
        self._buffer.clear()
        handle.flush()

    def finish(self) -> None:
        """Write the remaining items and close the file."""
        self.flush()
        self.close()

    def into_reader(self) -> RecordReader:
        """Write the remaining items and hand the file over to a reader from its start."""
        self.flush()
        handle = self._handle()
        handle.seek(0)
        self._file = None
        return RecordReader(handle, self._decode)

    def close(self) -> None:
        """Close the file without writing buffered items."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> ObjectBuffer:
        return self

    def __exit__(self, exc_type: object, *exc_info: object) -> None:
        if exc_type is None and self._file is not None:
            self.finish()
        else:
            self.close()