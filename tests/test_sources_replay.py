"""
Unit tests for the replay source: line handling, default dt, end of file.
"""

import io
import tempfile
from pathlib import Path

from gamepad_motion.sources.replay import ReplaySource, open_replay_source


def _source(text: str, default_dt: float = 0.01) -> ReplaySource:
    return ReplaySource(io.StringIO(text), default_dt=default_dt)


class TestReplaySource:
    """Reading recorded sessions."""

    def test_reads_samples_in_order(self) -> None:
        source = _source(
            '{"gyro":[1,0,0],"accel":[0,1,0],"dt":0.02}\n'
            '{"gyro":[2,0,0],"accel":[0,1,0],"dt":0.03}\n'
        )
        assert source.read() == ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0.02)
        assert source.read() == ((2.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0.03)
        assert source.read() is None
        assert source.exhausted

    def test_missing_dt_uses_default(self) -> None:
        source = _source('{"gyro":[0,0,0],"accel":[0,1,0]}\n', default_dt=0.005)
        sample = source.read()
        assert sample is not None
        assert sample[2] == 0.005

    def test_skips_blank_and_invalid_lines(self) -> None:
        source = _source(
            "\n"
            "garbage\n"
            '{"gyro":[0,0],"accel":[0,1,0]}\n'
            '{"gyro":[0,0,0],"accel":[0,1,0],"dt":-1}\n'
            '{"gyro":[3,0,0],"accel":[0,1,0]}\n'
        )
        sample = source.read()
        assert sample is not None
        assert sample[0] == (3.0, 0.0, 0.0)
        assert source.skipped == 3

    def test_last_line_without_newline(self) -> None:
        source = _source('{"gyro":[0,0,1],"accel":[0,1,0]}')
        sample = source.read()
        assert sample is not None
        assert sample[0] == (0.0, 0.0, 1.0)

    def test_empty_stream_exhausted(self) -> None:
        source = _source("")
        assert not source.exhausted
        assert source.read() is None
        assert source.exhausted
        assert source.read() is None

    def test_stop_closes_stream(self) -> None:
        stream = io.StringIO('{"gyro":[0,0,0],"accel":[0,1,0]}\n')
        source = ReplaySource(stream)
        source.stop()
        assert stream.closed
        assert source.exhausted
        assert source.read() is None


class TestOpenReplaySource:
    """Opening replay files."""

    def test_missing_file_returns_none(self) -> None:
        assert open_replay_source(Path("/nonexistent/samples.jsonl"), 0.01) is None

    def test_opens_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "samples.jsonl"
            path.write_text('{"gyro":[0,1,0],"accel":[0,1,0],"dt":0.01}\n')
            source = open_replay_source(path, 0.01)
            assert source is not None
            try:
                assert source.read() == ((0.0, 1.0, 0.0), (0.0, 1.0, 0.0), 0.01)
            finally:
                source.stop()

    def test_invalid_utf8_line_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "samples.jsonl"
            path.write_bytes(
                b'{"gyro":[0,0,0],"accel":[0,1,0]}\n'
                b"\xff\xfe\n"
                b'{"gyro":[1,0,0],"accel":[0,1,0]}\n'
            )
            source = open_replay_source(path, 0.01)
            assert source is not None
            try:
                first = source.read()
                second = source.read()
            finally:
                source.stop()
            assert first is not None and first[0] == (0.0, 0.0, 0.0)
            assert second is not None and second[0] == (1.0, 0.0, 0.0)
            assert source.skipped == 1


class TestReplaySourceDecodeFailure:
    """A strictly decoded stream with bad bytes ends the replay."""

    def test_decode_error_exhausts_source(self) -> None:
        stream = io.TextIOWrapper(io.BytesIO(b"\xff\xfe\xfd\n"), encoding="utf-8")
        source = ReplaySource(stream)
        assert source.read() is None
        assert source.exhausted
        assert source.read() is None
