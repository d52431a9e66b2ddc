import json
import pytest
from engine_stream import consume_build_stream, consume_pull_stream, consume_push_stream
from utils import StreamError, IncompleteResponse


def ndjson(*objects):
    return [json.dumps(obj).encode() + b"\n" for obj in objects]


class TestPushStream:
    """Test cases for push responses"""

    def test_only_stream_lines_is_incomplete(self):
        stream = ndjson({"stream": "Preparing"}, {"stream": "Pushing"})
        with pytest.raises(IncompleteResponse):
            consume_push_stream(stream)

    def test_empty_stream_is_incomplete(self):
        with pytest.raises(IncompleteResponse):
            consume_push_stream([])

    def test_digest_is_returned(self):
        stream = [
            {"status": "Pushed"},
            {"aux": {"Tag": "latest", "Digest": "sha256:abc", "Size": 527}},
        ]
        assert consume_push_stream(stream) == "sha256:abc"

    def test_stops_at_digest(self):
        consumed = []

        def stream():
            for line in ({"status": "Pushed"}, {"aux": {"Digest": "sha256:abc"}}, {"error": "late"}):
                consumed.append(line)
                yield line

        assert consume_push_stream(stream()) == "sha256:abc"
        assert len(consumed) == 2

    def test_error_line(self):
        stream = ndjson({"status": "Preparing"}, {"errorDetail": {"message": "denied"}, "error": "denied"})
        with pytest.raises(StreamError, match="denied"):
            consume_push_stream(stream)


class TestBuildStream:
    """Test cases for build responses"""

    def test_reads_to_eof(self):
        stream = ndjson(
            {"stream": "Step 1/2 : FROM busybox\n"},
            {"aux": {"ID": "sha256:feed"}},
            {"stream": "Successfully built feed\n"},
        )
        assert consume_build_stream(stream) == "sha256:feed"

    def test_error_line(self):
        stream = ndjson({"stream": "Step 1/2\n"}, {"error": "COPY failed"})
        with pytest.raises(StreamError, match="COPY failed"):
            consume_build_stream(stream)

    def test_malformed_line(self):
        with pytest.raises(StreamError):
            consume_build_stream([b"{not json\n"])

    def test_blank_lines_are_skipped(self):
        assert consume_build_stream([b"\n", "  ", json.dumps({"stream": "ok"})]) is None


class TestPullStream:
    """Test cases for pull responses"""

    def test_digest_from_status(self):
        stream = ndjson(
            {"status": "Pulling from library/busybox", "id": "latest"},
            {"status": "Digest: sha256:beef"},
            {"status": "Status: Downloaded newer image for busybox:latest"},
        )
        assert consume_pull_stream(stream) == "sha256:beef"

    def test_no_digest(self):
        assert consume_pull_stream(ndjson({"status": "Already exists"})) is None

    def test_error_line(self):
        with pytest.raises(StreamError, match="not found"):
            consume_pull_stream(ndjson({"error": "manifest for x not found"}))

    def test_invalid_utf8_line(self):
        with pytest.raises(StreamError):
            consume_build_stream([b"\xff\xfe{}\n"])
