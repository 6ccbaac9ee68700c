"""
Unit tests for remote source JSON parsing: valid, invalid, and edge cases.
"""

import math

import pytest

from gamepad_motion.sources.base import parse_sample
from gamepad_motion.sources.remote import RemoteSource


class TestParseSample:
    """Protocol validation shared by all sources."""

    def test_full_sample(self) -> None:
        sample = parse_sample({"gyro": [1, 2, 3], "accel": [0, 1, 0], "dt": 0.01})
        assert sample == ((1.0, 2.0, 3.0), (0.0, 1.0, 0.0), 0.01)

    def test_dt_optional(self) -> None:
        sample = parse_sample({"gyro": [0, 0, 0], "accel": [0, 1, 0]})
        assert sample == ((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), None)

    def test_dt_null_treated_as_missing(self) -> None:
        sample = parse_sample({"gyro": [0, 0, 0], "accel": [0, 1, 0], "dt": None})
        assert sample is not None
        assert sample[2] is None

    def test_zero_dt_accepted(self) -> None:
        sample = parse_sample({"gyro": [0, 0, 0], "accel": [0, 1, 0], "dt": 0})
        assert sample is not None
        assert sample[2] == 0.0

    def test_negative_dt_rejected(self) -> None:
        assert parse_sample({"gyro": [0, 0, 0], "accel": [0, 1, 0], "dt": -0.01}) is None

    def test_non_numeric_dt_rejected(self) -> None:
        assert parse_sample({"gyro": [0, 0, 0], "accel": [0, 1, 0], "dt": "x"}) is None

    def test_nan_rejected(self) -> None:
        assert parse_sample({"gyro": [math.nan, 0, 0], "accel": [0, 1, 0]}) is None

    def test_infinity_rejected(self) -> None:
        assert parse_sample({"gyro": [0, 0, 0], "accel": [0, math.inf, 0]}) is None
        assert (
            parse_sample({"gyro": [0, 0, 0], "accel": [0, 1, 0], "dt": math.inf})
            is None
        )

    def test_not_a_dict_rejected(self) -> None:
        assert parse_sample([1, 2, 3]) is None
        assert parse_sample(None) is None


class TestRemoteSourceParseLineValid:
    """Valid JSON input for remote protocol."""

    def test_sample_queued(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        source._parse_line('{"gyro":[0.5,-1.0,2.0],"accel":[0.0,1.0,0.0],"dt":0.004}')
        assert source.pending() == 1
        sample = source.read()
        assert sample == ((0.5, -1.0, 2.0), (0.0, 1.0, 0.0), 0.004)
        assert source.read() is None

    def test_samples_read_in_arrival_order(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        source._parse_line('{"gyro":[1,0,0],"accel":[0,1,0]}')
        source._parse_line('{"gyro":[2,0,0],"accel":[0,1,0]}')
        first = source.read()
        second = source.read()
        assert first is not None and second is not None
        assert first[0] == (1.0, 0.0, 0.0)
        assert second[0] == (2.0, 0.0, 0.0)

    def test_numeric_strings_converted(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        source._parse_line('{"gyro":["0.1","0.2","0.3"],"accel":["0","1","0"]}')
        assert source.read() == ((0.1, 0.2, 0.3), (0.0, 1.0, 0.0), None)


class TestRemoteSourceParseLineInvalid:
    """Invalid input for remote protocol."""

    def test_invalid_json_rejected(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        source._parse_line('{"gyro": [0, 0, 0]')  # missing closing brace
        assert source.read() is None
        assert source.rejected == 1

    def test_not_json_rejected(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        source._parse_line("not json at all")
        assert source.read() is None
        assert source.rejected == 1

    def test_missing_accel_rejected(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        source._parse_line('{"gyro":[0,0,0]}')
        assert source.read() is None

    def test_short_list_rejected(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        source._parse_line('{"gyro":[0,0],"accel":[0,1,0]}')
        assert source.read() is None

    def test_nan_literal_rejected(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        source._parse_line('{"gyro":[NaN,0,0],"accel":[0,1,0]}')
        assert source.read() is None
        assert source.rejected == 1


class TestRemoteSourceQueue:
    """Bounded queue behaviour."""

    def test_read_before_any_parse_returns_none(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0)
        assert source.read() is None
        assert source.pending() == 0
        assert source.exhausted is False

    def test_full_queue_drops_oldest(self) -> None:
        source = RemoteSource(host="127.0.0.1", port=0, max_queued=3)
        for i in range(5):
            source._parse_line('{"gyro":[%d,0,0],"accel":[0,1,0]}' % i)
        assert source.pending() == 3
        sample = source.read()
        assert sample is not None
        assert sample[0] == (2.0, 0.0, 0.0)


class TestRemoteSourceArrivalTime:
    """Samples without dt are timed by their arrival."""

    def test_missing_dt_is_time_since_previous_arrival(self) -> None:
        clock = iter([10.0, 10.004, 10.012])
        source = RemoteSource(host="127.0.0.1", port=0, clock=lambda: next(clock))
        for _ in range(3):
            source._parse_line('{"gyro":[0,0,0],"accel":[0,1,0]}')
        dts = [source.read()[2] for _ in range(3)]  # type: ignore[index]
        assert dts[0] is None
        assert dts[1] == pytest.approx(0.004)
        assert dts[2] == pytest.approx(0.008)

    def test_explicit_dt_kept_and_stamps_arrival(self) -> None:
        clock = iter([5.0, 5.01])
        source = RemoteSource(host="127.0.0.1", port=0, clock=lambda: next(clock))
        source._parse_line('{"gyro":[0,0,0],"accel":[0,1,0],"dt":0.5}')
        source._parse_line('{"gyro":[0,0,0],"accel":[0,1,0]}')
        first = source.read()
        second = source.read()
        assert first is not None and first[2] == 0.5
        assert second is not None and second[2] == pytest.approx(0.01)

    def test_queued_samples_keep_arrival_dt_when_read_late(self) -> None:
        clock = iter([1.0, 1.002])
        source = RemoteSource(host="127.0.0.1", port=0, clock=lambda: next(clock))
        source._parse_line('{"gyro":[0,0,0],"accel":[0,1,0]}')
        source._parse_line('{"gyro":[0,0,0],"accel":[0,1,0]}')
        source.read()
        sample = source.read()
        assert sample is not None
        assert sample[2] == pytest.approx(0.002)
