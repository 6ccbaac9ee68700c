"""
Build state reports (JSON lines) from a GamepadMotion.
"""

import json
import math
from typing import Dict, Optional, Tuple

from gamepad_motion.gamepad import GamepadMotion


def _normalize_degrees(angle: float) -> float:
    """Wrap an angle in degrees to [0, 360)."""
    a = math.fmod(angle, 360.0)
    if a < 0:
        a += 360.0
    if a >= 360.0:
        a -= 360.0
    return a


def quaternion_to_euler(
    quaternion: Tuple[float, float, float, float],
) -> Dict[str, float]:
    """
    Euler angles in degrees for a Y-up orientation (w, x, y, z).

    yaw is about Y in [0, 360), pitch about X in [-90, 90], roll about Z.
    """
    w, x, y, z = quaternion
    sinp = max(-1.0, min(1.0, 2.0 * (w * x - y * z)))
    pitch = math.degrees(math.asin(sinp))
    yaw = math.degrees(math.atan2(2.0 * (w * y + x * z), 1.0 - 2.0 * (x * x + y * y)))
    roll = math.degrees(math.atan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (x * x + z * z)))
    return {"yaw": _normalize_degrees(yaw), "pitch": pitch, "roll": roll}


def build_state(motion: GamepadMotion, timestamp: Optional[float] = None) -> dict:
    """Snapshot of the current motion state as a JSON-suitable dict."""
    orientation = motion.get_orientation()
    return {
        "t": timestamp,
        "gyro": list(motion.get_calibrated_gyro()),
        "accel": list(motion.get_processed_acceleration()),
        "gravity": list(motion.get_gravity()),
        "orientation": list(orientation),
        "euler": quaternion_to_euler(orientation),
        "calibration_mode": motion.calibration_mode.value,
    }


def format_state_line(state: dict) -> str:
    """One newline-terminated JSON line."""
    return json.dumps(state, separators=(",", ":")) + "\n"
