"""
Replay source: samples from a JSON lines file, one per read().
"""

import json
import logging
from pathlib import Path
from typing import IO, Optional

from gamepad_motion.sources.base import MotionSample, MotionSource, parse_sample

logger = logging.getLogger(__name__)


class ReplaySource(MotionSource):
    """
    Reads a recorded session line by line.

    Blank lines, invalid JSON and invalid samples are skipped. Samples
    without "dt" get default_dt. A stream that fails to decode ends the
    replay.
    """

    def __init__(self, stream: IO[str], default_dt: float = 0.01) -> None:
        self._stream: Optional[IO[str]] = stream
        self._default_dt = default_dt
        self._line_number = 0
        self._skipped = 0

    @property
    def exhausted(self) -> bool:
        return self._stream is None

    @property
    def skipped(self) -> int:
        """Number of lines rejected so far."""
        return self._skipped

    def read(self) -> Optional[MotionSample]:
        while self._stream is not None:
            try:
                line = self._stream.readline()
            except UnicodeDecodeError as e:
                logger.error("Replay stream is not valid UTF-8: %s", e)
                self.stop()
                return None
            if not line:
                self.stop()
                return None
            self._line_number += 1
            line = line.strip()
            if not line:
                continue
            try:
                sample = parse_sample(json.loads(line))
            except json.JSONDecodeError:
                sample = None
            if sample is None:
                self._skipped += 1
                logger.debug("Skipping invalid sample on line %d", self._line_number)
                continue
            gyro, accel, dt = sample
            return (gyro, accel, self._default_dt if dt is None else dt)
        return None

    def stop(self) -> None:
        if self._stream is not None:
            try:
                self._stream.close()
            except OSError:
                pass
            self._stream = None


def open_replay_source(path: Path, default_dt: float) -> Optional[ReplaySource]:
    """
    Open a replay file. Returns None if it cannot be read.

    Undecodable bytes are replaced, so such lines are skipped as invalid JSON.
    """
    try:
        stream = path.open("r", encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error("Replay file open failed %s: %s", path, e)
        return None
    return ReplaySource(stream, default_dt=default_dt)
