"""
Calibration control API: TCP server for get/set calibration and motion state.

Protocol: one JSON object per line.
- get_calibration: returns gyro_offset, accel_magnitude, mode and status.
- set_calibration: sets gyro_offset with a weight, optional file save.
- calibrate_gyro: run continuous calibration for some seconds, then save.
- set_mode: "basic" or "auto".
- reset_calibration / reset_motion: clear calibration or orientation.
- get_motion: current orientation, gravity and acceleration.
The main loop feeds samples through manager.process_motion().
"""

import json
import logging
import math
import socket
import threading
from pathlib import Path
from typing import Callable, Optional, Tuple

from gamepad_motion.calibration import save_calibration
from gamepad_motion.gamepad import CalibrationMode, GamepadMotion
from gamepad_motion.report import build_state

logger = logging.getLogger(__name__)

MIN_CALIBRATION_SECONDS = 0.5
MAX_CALIBRATION_SECONDS = 60.0
DEFAULT_CALIBRATION_SECONDS = 5.0

ACCEPT_TIMEOUT = 1.0  # s, how often shutdown() is polled
CLIENT_TIMEOUT = 10.0  # s


class CalibrationManager:
    """
    Thread-safe owner of a GamepadMotion.

    Every call into the motion state goes through the lock, so the main
    loop and the API thread never run the engine at the same time.
    When calibrate_gyro(seconds) is requested, continuous calibration runs
    for that many samples and is then paused and saved.
    """

    def __init__(
        self,
        motion: GamepadMotion,
        save_path: Optional[Path] = None,
    ) -> None:
        self._motion = motion
        self._save_path = save_path
        self._lock = threading.Lock()
        self._samples_collected = 0
        self._samples_needed = 0

    def get_motion(self) -> GamepadMotion:
        return self._motion

    def process_motion(
        self,
        gyro: Tuple[float, float, float],
        accel: Tuple[float, float, float],
        delta_time: float,
    ) -> bool:
        """
        Feed one sample. Returns True if the gyro offset changed because
        an auto recalibration fired or a timed calibration finished.
        """
        with self._lock:
            recalibrated = self._motion.process_motion(
                gyro[0], gyro[1], gyro[2], accel[0], accel[1], accel[2], delta_time
            )
            if (
                self._samples_needed > 0
                and self._motion.calibration_mode is CalibrationMode.BASIC
                and self._motion.is_calibrating
            ):
                self._samples_collected += 1
                if self._samples_collected >= self._samples_needed:
                    self._finish_gyro_calibration()
                    return True
            return recalibrated

    def _finish_gyro_calibration(self) -> None:
        self._motion.pause_continuous_calibration()
        self._samples_needed = 0
        self._samples_collected = 0
        x, y, z = self._motion.get_calibration_offset()
        logger.info(
            "Gyro calibration done: offset=(%.4f, %.4f, %.4f) deg/s", x, y, z
        )
        if self._save_path:
            save_calibration(self._save_path, self._motion.calibration)

    def start_gyro_calibration(self, seconds: float, sample_rate_hz: float) -> int:
        """
        Reset the offset and collect samples for the given duration.

        Switches to BASIC mode. Returns number of samples needed.
        """
        with self._lock:
            self._motion.calibration_mode = CalibrationMode.BASIC
            self._motion.reset_continuous_calibration()
            self._motion.start_continuous_calibration()
            self._samples_collected = 0
            self._samples_needed = max(1, int(seconds * sample_rate_hz))
            return self._samples_needed

    def set_calibration_offset(
        self, offset: Tuple[float, float, float], weight: int
    ) -> None:
        with self._lock:
            self._motion.set_calibration_offset(offset[0], offset[1], offset[2], weight)

    def set_calibration_mode(self, mode: CalibrationMode) -> None:
        """Change mode. Leaving BASIC cancels a timed calibration unsaved."""
        with self._lock:
            if mode is not CalibrationMode.BASIC and self._samples_needed > 0:
                self._motion.pause_continuous_calibration()
                self._samples_needed = 0
                self._samples_collected = 0
                logger.info(
                    "Gyro calibration cancelled by switch to %s mode", mode.value
                )
            self._motion.calibration_mode = mode

    def reset_calibration(self) -> None:
        with self._lock:
            self._motion.pause_continuous_calibration()
            self._motion.reset_continuous_calibration()
            self._samples_needed = 0
            self._samples_collected = 0

    def reset_motion(self) -> None:
        with self._lock:
            self._motion.reset_motion()

    def save(self) -> bool:
        """Write the current calibration to the save path, if any."""
        if not self._save_path:
            return False
        with self._lock:
            return save_calibration(self._save_path, self._motion.calibration)

    def snapshot(self, timestamp: Optional[float] = None) -> dict:
        """Current motion state (see report.build_state)."""
        with self._lock:
            return build_state(self._motion, timestamp)

    def get_status(self) -> dict:
        """Current calibration and collection status for API response."""
        with self._lock:
            calibration = self._motion.calibration
            _, _, _, accel_magnitude = calibration.get_offset()
            status: str = "collecting" if self._samples_needed > 0 else "idle"
            return {
                "gyro_offset": list(self._motion.get_calibration_offset()),
                "accel_magnitude": accel_magnitude,
                "num_samples": calibration.num_samples,
                "calibration_mode": self._motion.calibration_mode.value,
                "calibration_status": status,
                "samples_collected": self._samples_collected,
                "samples_needed": self._samples_needed,
            }


def _parse_triple(value: object) -> Optional[Tuple[float, float, float]]:
    """List of 3 finite numbers as a tuple; else None."""
    if not isinstance(value, (list, tuple)) or len(value) < 3:
        return None
    try:
        triple = (float(value[0]), float(value[1]), float(value[2]))
    except (TypeError, ValueError):
        return None
    if not all(math.isfinite(v) for v in triple):
        return None
    return triple


def _handle_request(  # noqa: C901
    manager: CalibrationManager,
    request: dict,
    sample_rate_hz: float,
) -> dict:
    """Process one API request; return response dict."""
    if not isinstance(request, dict):
        return {"error": "invalid request"}

    if request.get("get_calibration"):
        return manager.get_status()

    if request.get("get_motion"):
        return manager.snapshot()

    set_cal = request.get("set_calibration")
    if set_cal is not None:
        if not isinstance(set_cal, dict):
            return {"error": "set_calibration must be an object"}
        offset = _parse_triple(set_cal.get("gyro_offset"))
        if offset is None:
            return {"error": "gyro_offset must be [x,y,z] of finite numbers"}
        weight = set_cal.get("weight", 1)
        if isinstance(weight, bool) or not isinstance(weight, int) or weight < 1:
            return {"error": "weight must be a positive integer"}
        manager.set_calibration_offset(offset, weight)
        manager.save()
        return {"ok": True}

    cal_gyro = request.get("calibrate_gyro")
    if cal_gyro is not None:
        if not isinstance(cal_gyro, dict):
            return {"error": "calibrate_gyro must be an object"}
        try:
            seconds = float(cal_gyro.get("seconds", DEFAULT_CALIBRATION_SECONDS))
        except (TypeError, ValueError):
            return {"error": "seconds must be a number"}
        if math.isnan(seconds):
            return {"error": "seconds must be a number"}
        seconds = max(MIN_CALIBRATION_SECONDS, min(MAX_CALIBRATION_SECONDS, seconds))
        needed = manager.start_gyro_calibration(seconds, sample_rate_hz)
        return {"status": "collecting", "samples_needed": needed}

    mode = request.get("set_mode")
    if mode is not None:
        try:
            manager.set_calibration_mode(CalibrationMode(mode))
        except ValueError:
            return {"error": "set_mode must be 'basic' or 'auto'"}
        return {"ok": True}

    if request.get("reset_calibration"):
        manager.reset_calibration()
        manager.save()
        return {"ok": True}

    if request.get("reset_motion"):
        manager.reset_motion()
        return {"ok": True}

    return {"error": "unknown request"}


def _serve_client(
    manager: CalibrationManager,
    client: socket.socket,
    sample_rate_hz: float,
    shutdown: Callable[[], bool],
) -> None:
    """Answer requests on one connection until it closes or shutdown."""
    client.settimeout(CLIENT_TIMEOUT)
    with client.makefile(mode="rw", encoding="utf-8") as f:
        for line in f:
            if shutdown():
                return
            line = line.strip()
            if not line:
                continue
            try:
                request = json.loads(line)
            except json.JSONDecodeError:
                response = {"error": "invalid JSON"}
            else:
                response = _handle_request(manager, request, sample_rate_hz)
            f.write(json.dumps(response) + "\n")
            f.flush()


def run_calibration_server(
    manager: CalibrationManager,
    host: str,
    port: int,
    sample_rate_hz: float,
    shutdown: Callable[[], bool],
    ready: Optional[threading.Event] = None,
) -> None:
    """
    Serve the calibration API until shutdown() returns True.

    Call from a dedicated thread. One client at a time; each request line
    gets exactly one response line. ready, if given, is set once the
    socket is listening.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as e:
        logger.error("Calibration API bind failed %s:%s: %s", host, port, e)
        sock.close()
        return
    sock.listen(1)
    sock.settimeout(ACCEPT_TIMEOUT)
    logger.info("Calibration API on %s:%s", host, port)
    if ready is not None:
        ready.set()

    try:
        while not shutdown():
            try:
                client, addr = sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                logger.debug("Calibration API accept error: %s", e)
                continue
            logger.debug("Calibration API client %s", addr)
            try:
                _serve_client(manager, client, sample_rate_hz, shutdown)
            except OSError as e:
                logger.debug("Calibration API client error: %s", e)
            except UnicodeDecodeError as e:
                logger.debug("Calibration API client sent invalid UTF-8: %s", e)
            finally:
                client.close()
    finally:
        sock.close()
