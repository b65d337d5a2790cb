"""
Response Body Reader
====================

Scoped access to a response body. Entering a ``ResponseBody`` acquires the
raw stream and, for gzip-encoded responses, a decompressor over it.
Leaving releases them in reverse order, decompressor first and response
last, and does so exactly once however many times ``close`` is called.
"""

import gzip
import io
from contextlib import ExitStack
from typing import Iterator, Optional

import httpx

from lenses_cli.api.constants import CONTENT_ENCODING_HEADER, GZIP_ENCODING


class _ChunkReader(io.RawIOBase):
    """Readable file object over an iterator of byte chunks."""

    def __init__(self, chunks: Iterator[bytes]):
        self._chunks = chunks
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0

        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


class ResponseBody:
    """
    Context manager over the body of an open ``httpx.Response``.

    Reads go through a buffered reader, so ``read``, ``readline`` and line
    iteration all work for both plain and gzip bodies.

    A response that httpx has already buffered (for example one built with
    ``content=``) is served from its decoded content, without a
    decompressor.
    """

    def __init__(self, response: httpx.Response):
        self.response = response
        self._reader: Optional[io.BufferedIOBase] = None
        self._stack: Optional[ExitStack] = None

    @property
    def is_gzip(self) -> bool:
        encoding = self.response.headers.get(CONTENT_ENCODING_HEADER, "")
        return encoding.strip().lower() == GZIP_ENCODING

    def open(self) -> "ResponseBody":
        """Acquire the stream (and the decompressor) if not already acquired."""
        if self._stack is not None:
            return self

        with ExitStack() as stack:
            stack.callback(self.response.close)

            if self.response.is_stream_consumed:
                reader: io.BufferedIOBase = io.BytesIO(self.response.content)
            else:
                reader = io.BufferedReader(_ChunkReader(self.response.iter_raw()))
                stack.callback(reader.close)

                if self.is_gzip:
                    reader = gzip.GzipFile(fileobj=reader, mode="rb")
                    stack.callback(reader.close)

            self._reader = reader
            self._stack = stack.pop_all()

        return self

    def read(self, size: int = -1) -> bytes:
        return self._require_reader().read(size)

    def readline(self) -> bytes:
        return self._require_reader().readline()

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._require_reader())

    def close(self) -> None:
        """Release in reverse acquisition order. Safe to call repeatedly."""
        stack, self._stack = self._stack, None
        if stack is None:
            if not self.response.is_closed:
                self.response.close()
            return
        stack.close()

    def __enter__(self) -> "ResponseBody":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _require_reader(self) -> io.BufferedIOBase:
        if self._reader is None:
            raise ValueError("response body is not open")
        return self._reader
