"""
Pluggable sample sources.

- remote: TCP server accepting JSON lines from a controller bridge
- replay: JSON lines file recorded earlier
"""

from gamepad_motion.sources.base import MotionSample, MotionSource, parse_sample
from gamepad_motion.sources.remote import RemoteSource, create_remote_source
from gamepad_motion.sources.replay import ReplaySource, open_replay_source

__all__ = [
    "MotionSample",
    "MotionSource",
    "RemoteSource",
    "ReplaySource",
    "create_remote_source",
    "open_replay_source",
    "parse_sample",
]
