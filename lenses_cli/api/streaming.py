"""
Streaming Frame Reader
======================

Live endpoints send newline-delimited frames of the form
``data:<n><payload>``, where ``<n>`` is a single classification digit
(heartbeat, record, end, error or stats) that this layer passes over without
interpreting. Only the frame payloads are handed on. A last line cut off
by the end of the stream, with no newline, is dropped.
"""

from typing import Iterable, Iterator

from lenses_cli.api.constants import DATA_PREFIX, FRAME_PREFIX, MIN_FRAME_LENGTH
from lenses_cli.api.errors import StreamProtocolError

MISSING_PREFIX_MESSAGE = (
    "client: see: fail to read the event, the incoming message has no "
    f"[{DATA_PREFIX.decode()}] prefix"
)


def iter_frames(lines: Iterable[bytes], *, strict: bool = True) -> Iterator[bytes]:
    """Yield the payload of every data frame in ``lines``.

    Args:
        lines: Raw lines with their line terminators; a line without a
            trailing newline is incomplete and is dropped
        strict: When true a line without the ``data`` prefix raises
            ``StreamProtocolError``; otherwise it is skipped

    Yields:
        Frame payloads, in arrival order

    Raises:
        StreamProtocolError: On a line without the ``data`` prefix in strict mode
    """
    for raw_line in lines:
        if not raw_line.endswith(b"\n"):
            continue

        line = raw_line.rstrip(b"\r\n")
        if len(line) < MIN_FRAME_LENGTH:
            continue

        if not line.startswith(DATA_PREFIX):
            if strict:
                raise StreamProtocolError(MISSING_PREFIX_MESSAGE)
            continue

        payload = line[len(FRAME_PREFIX):]
        if payload[:1].isdigit():
            payload = payload[1:]

        if len(payload) < 2:
            continue

        yield payload
