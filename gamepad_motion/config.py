"""
Configuration defaults and parsing for gamepad-motion.
"""

import argparse
import math
from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """Runtime configuration."""

    source: str = "remote"
    remote_host: str = "0.0.0.0"
    remote_port: int = 2949
    replay_file: Optional[str] = None
    output_host: str = "127.0.0.1"
    output_port: int = 2948
    imu_rate_hz: float = 100.0
    output_rate_hz: float = 30.0
    calibration_mode: str = "basic"
    calibration_file: Optional[str] = None
    calibration_port: int = 0
    symmetric_recalibration: bool = False
    legacy_gravity_window: bool = False
    debug: bool = False


def parse_args(args: Optional[list] = None) -> Config:
    """Parse command-line arguments into Config."""
    parser = argparse.ArgumentParser(
        description=(
            "Track gamepad orientation from gyro and accelerometer samples; "
            "output orientation, gravity and acceleration as JSON lines."
        )
    )
    parser.add_argument(
        "--source",
        choices=("remote", "replay"),
        default="remote",
        help="Sample source: remote (TCP JSON lines) or replay (file) "
        "(default: remote)",
    )
    parser.add_argument(
        "--remote-host",
        default="0.0.0.0",
        help="Bind address for remote source (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--remote-port",
        type=int,
        default=2949,
        help="Port for remote source (default: 2949)",
    )
    parser.add_argument(
        "--replay-file",
        default=None,
        help="JSON lines file of samples for --source=replay",
    )
    parser.add_argument(
        "--output-host",
        default="127.0.0.1",
        help="Bind address for the state output server (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--output-port",
        type=int,
        default=2948,
        help="Port for the state output server (default: 2948)",
    )
    parser.add_argument(
        "--imu-rate",
        type=float,
        default=100.0,
        help="Sample rate in Hz, used when samples carry no dt (default: 100)",
    )
    parser.add_argument(
        "--output-rate",
        type=float,
        default=30.0,
        help="State output rate in Hz (default: 30)",
    )
    parser.add_argument(
        "--calibration-mode",
        choices=("basic", "auto"),
        default="basic",
        help="Gyro calibration: basic (manual) or auto (default: basic)",
    )
    parser.add_argument(
        "--calibration-file",
        default=None,
        help="Load/save calibration from JSON file (optional)",
    )
    parser.add_argument(
        "--calibration-port",
        type=int,
        default=0,
        help="TCP port for calibration API (0=disabled, default 0)",
    )
    parser.add_argument(
        "--symmetric-recalibration",
        action="store_true",
        help="Auto calibration compares every axis against its own noise floor",
    )
    parser.add_argument(
        "--legacy-gravity-window",
        action="store_true",
        help="Keep the old gravity window scan that never lowers the z minimum",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parsed = parser.parse_args(args)
    rates = (("--imu-rate", parsed.imu_rate), ("--output-rate", parsed.output_rate))
    for flag, rate in rates:
        if not (math.isfinite(rate) and rate > 0):
            parser.error(f"{flag} must be a positive number of Hz")
    return Config(
        source=parsed.source,
        remote_host=parsed.remote_host,
        remote_port=parsed.remote_port,
        replay_file=parsed.replay_file,
        output_host=parsed.output_host,
        output_port=parsed.output_port,
        imu_rate_hz=parsed.imu_rate,
        output_rate_hz=parsed.output_rate,
        calibration_mode=parsed.calibration_mode,
        calibration_file=parsed.calibration_file,
        calibration_port=parsed.calibration_port,
        symmetric_recalibration=parsed.symmetric_recalibration,
        legacy_gravity_window=parsed.legacy_gravity_window,
        debug=parsed.debug,
    )
