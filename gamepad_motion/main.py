"""
Main loop: feed samples from a source through GamepadMotion, output state lines.
"""

import logging
import select
import signal
import sys
import threading
import time
from pathlib import Path
from typing import IO, Optional

from gamepad_motion.calibration import load_calibration
from gamepad_motion.calibration_api import CalibrationManager, run_calibration_server
from gamepad_motion.config import Config, parse_args
from gamepad_motion.gamepad import CalibrationMode, GamepadMotion
from gamepad_motion.output_server import StateTcpServer
from gamepad_motion.report import format_state_line
from gamepad_motion.sources import create_remote_source, open_replay_source
from gamepad_motion.sources.base import MotionSource

logger = logging.getLogger(__name__)

_shutdown = False


def _signal_handler(signum: int, frame: Optional[object]) -> None:
    global _shutdown
    _shutdown = True


def build_manager(config: Config) -> CalibrationManager:
    """Create the motion engine and its manager from config."""
    cal_path = Path(config.calibration_file) if config.calibration_file else None
    motion = GamepadMotion(
        calibration=load_calibration(cal_path),
        calibration_mode=CalibrationMode(config.calibration_mode),
        symmetric_trigger=config.symmetric_recalibration,
        legacy_gravity_min_z=config.legacy_gravity_window,
    )
    return CalibrationManager(motion, save_path=cal_path)


def run_replay(
    config: Config,
    manager: CalibrationManager,
    source: MotionSource,
    out: IO[str],
) -> int:
    """
    Process every sample of a replay source as fast as possible.

    A state line is written each output interval of sample time, and once
    more after the last sample.
    """
    output_interval = 1.0 / config.output_rate_hz
    sample_time = 0.0
    next_output = 0.0
    processed = 0
    while not _shutdown:
        sample = source.read()
        if sample is None:
            if source.exhausted:
                break
            continue
        gyro, accel, dt = sample
        delta_time = dt if dt is not None else 1.0 / config.imu_rate_hz
        if manager.process_motion(gyro, accel, delta_time):
            logger.debug("Gyro offset updated at t=%.3f", sample_time)
        sample_time += delta_time
        processed += 1
        if sample_time >= next_output:
            out.write(format_state_line(manager.snapshot(sample_time)))
            next_output = sample_time + output_interval
    if processed:
        out.write(format_state_line(manager.snapshot(sample_time)))
    out.flush()
    logger.info("Replayed %d samples (%.2f s)", processed, sample_time)
    return 0


def run_live(
    config: Config,
    manager: CalibrationManager,
    source: MotionSource,
    server: StateTcpServer,
) -> int:
    """
    Process samples as they arrive; stream state at the output rate.

    Untimed samples carry their arrival interval from the source, so a
    backlog drained in one pass keeps its original spacing.
    """
    output_interval = 1.0 / config.output_rate_hz
    poll_interval = min(1.0 / config.imu_rate_hz, output_interval, 0.1)
    first_dt = 1.0 / config.imu_rate_hz
    last_output_time = 0.0

    while not _shutdown:
        if server.get_socket():
            r, _, _ = select.select([server.get_socket()], [], [], poll_interval)
            if r:
                server.accept_new()
        else:
            time.sleep(poll_interval)

        while not _shutdown:
            sample = source.read()
            if sample is None:
                break
            gyro, accel, dt = sample
            # only the first sample of a session arrives untimed
            if manager.process_motion(gyro, accel, first_dt if dt is None else dt):
                logger.debug("Gyro offset updated")

        now = time.monotonic()
        if (now - last_output_time) >= output_interval:
            last_output_time = now
            server.send_state(manager.snapshot(now))
    return 0


def run(config: Config) -> int:
    """
    Run the daemon: sample source -> GamepadMotion -> state output.

    Returns exit code (0 = success).
    """
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    log_level = logging.DEBUG if config.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    manager = build_manager(config)

    cal_thread = None
    if config.calibration_port > 0:
        cal_thread = threading.Thread(
            target=run_calibration_server,
            args=(
                manager,
                "127.0.0.1",
                config.calibration_port,
                config.imu_rate_hz,
                lambda: _shutdown,
            ),
            daemon=True,
        )
        cal_thread.start()

    if config.source == "replay":
        if not config.replay_file:
            logger.error("--source=replay needs --replay-file")
            return 1
        replay = open_replay_source(
            Path(config.replay_file), default_dt=1.0 / config.imu_rate_hz
        )
        if replay is None:
            return 1
        try:
            return run_replay(config, manager, replay, sys.stdout)
        finally:
            replay.stop()

    remote = create_remote_source(config.remote_host, config.remote_port)
    if remote is None:
        logger.error("Remote source bind failed")
        return 1

    server = StateTcpServer(host=config.output_host, port=config.output_port)
    if not server.start():
        remote.stop()
        return 1

    try:
        return run_live(config, manager, remote, server)
    except KeyboardInterrupt:
        return 0
    finally:
        server.stop()
        remote.stop()
        manager.save()


def main() -> None:
    """Entry point for the gamepad-motion script."""
    config = parse_args()
    sys.exit(run(config))


if __name__ == "__main__":
    main()
