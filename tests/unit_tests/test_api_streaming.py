"""Tests for live stream frame parsing and dispatch."""

import gzip
import json

import pytest

from lenses_cli.api.errors import StreamProtocolError
from lenses_cli.api.streaming import MISSING_PREFIX_MESSAGE, iter_frames


class TestIterFrames:
    def test_strips_prefix_and_classification_digit(self):
        lines = [b'data:0{"id":1}\n', b'data:1{"id":2}\r\n']

        assert list(iter_frames(lines)) == [b'{"id":1}', b'{"id":2}']

    def test_payload_without_digit_is_kept_whole(self):
        assert list(iter_frames([b"data:plain text\n"])) == [b"plain text"]

    def test_short_lines_are_skipped(self):
        lines = [b"\n", b"data:\n", b"data\n", b"x\n", b'data:0{"id":1}\n']

        assert list(iter_frames(lines)) == [b'{"id":1}']

    def test_short_payloads_are_skipped(self):
        # Heartbeats carry a digit and at most one byte.
        lines = [b"data:0\n", b"data:0x\n", b"data:2ok\n"]

        assert list(iter_frames(lines)) == [b"ok"]

    def test_missing_prefix_raises_in_strict_mode(self):
        lines = [b'data:0{"id":1}\n', b"event: ping\n", b'data:0{"id":2}\n']
        frames = iter_frames(lines)

        assert next(frames) == b'{"id":1}'
        with pytest.raises(StreamProtocolError) as exc_info:
            next(frames)

        assert str(exc_info.value) == MISSING_PREFIX_MESSAGE
        assert "[data] prefix" in str(exc_info.value)

    def test_missing_prefix_is_skipped_when_lenient(self):
        lines = [b'data:0{"id":1}\n', b"event: ping\n", b'data:0{"id":2}\n']

        assert list(iter_frames(lines, strict=False)) == [b'{"id":1}', b'{"id":2}']

    def test_empty_input(self):
        assert list(iter_frames([])) == []

    def test_unterminated_last_line_is_dropped(self):
        lines = [b'data:0{"id":1}\n', b'data:0{"id":2}']

        assert list(iter_frames(lines)) == [b'{"id":1}']


class TestStreamEvents:
    def test_handler_called_per_frame_in_order(self, make_client, stream_factory):
        response, stream = stream_factory(
            200, [b'data:0{"id":1}\n', b'data:0{"id":2}\n'], {"Content-Type": "text/event-stream"}
        )
        client = make_client(lambda request: response)
        seen = []

        client.stream_events(client.do("GET", "api/sse/audit"), json.loads, seen.append)

        assert seen == [{"id": 1}, {"id": 2}]
        assert stream.close_count == 1

    def test_frames_split_across_chunks(self, make_client, stream_factory):
        response, _ = stream_factory(200, [b'data:0{"i', b'd":1}\nda', b'ta:0{"id":2}\n'])
        client = make_client(lambda request: response)
        seen = []

        client.stream_events(client.do("GET", "api/sse/audit"), json.loads, seen.append)

        assert seen == [{"id": 1}, {"id": 2}]

    def test_handler_error_stops_the_stream(self, make_client, stream_factory):
        response, stream = stream_factory(200, [b'data:0{"id":1}\n', b'data:0{"id":2}\n'])
        client = make_client(lambda request: response)
        seen = []

        def handler(event):
            seen.append(event)
            raise RuntimeError("stop")

        with pytest.raises(RuntimeError, match="stop"):
            client.stream_events(client.do("GET", "api/sse/audit"), json.loads, handler)

        assert seen == [{"id": 1}]
        assert stream.close_count == 1

    def test_decode_error_propagates(self, make_client, stream_factory):
        response, stream = stream_factory(200, [b"data:0{broken\n"])
        client = make_client(lambda request: response)

        with pytest.raises(json.JSONDecodeError):
            client.stream_events(client.do("GET", "api/sse/audit"), json.loads, print)

        assert stream.close_count == 1

    def test_missing_prefix_closes_stream(self, make_client, stream_factory):
        response, stream = stream_factory(200, [b"retry: 1000\n"])
        client = make_client(lambda request: response)

        with pytest.raises(StreamProtocolError):
            client.stream_events(client.do("GET", "api/sse/alerts"), json.loads, print)

        assert stream.close_count == 1

    def test_stream_cut_mid_frame(self, make_client, stream_factory):
        response, stream = stream_factory(200, [b'data:0{"id":1}\ndata:0{"id"'])
        client = make_client(lambda request: response)
        seen = []

        client.stream_events(client.do("GET", "api/sse/audit"), json.loads, seen.append)

        assert seen == [{"id": 1}]
        assert stream.close_count == 1

    def test_gzip_stream(self, make_client, stream_factory):
        body = gzip.compress(b'data:0{"id":1}\ndata:0{"id":2}\n')
        response, _ = stream_factory(200, [body], {"Content-Encoding": "gzip"})
        client = make_client(lambda request: response)
        seen = []

        client.stream_events(client.do("GET", "api/sse/audit"), json.loads, seen.append)

        assert seen == [{"id": 1}, {"id": 2}]
