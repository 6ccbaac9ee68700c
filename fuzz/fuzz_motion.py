#!/usr/bin/env python3
"""
LibFuzzer harness for the motion engine (GamepadMotion.process_motion).

Bytes are turned into a run of sensor samples within controller range.
The orientation must stay a finite unit quaternion whatever the input.
Run: python fuzz/fuzz_motion.py fuzz/corpus/motion/ [options]
"""

import math
import sys

try:
    import atheris
except ImportError:
    print("Install atheris: pip install atheris")
    sys.exit(1)

with atheris.instrument_imports():
    from gamepad_motion.gamepad import CalibrationMode, GamepadMotion

MAX_GYRO = 2000.0
MAX_ACCEL = 8.0
MAX_DT = 0.5


def test_one_input(data: bytes) -> None:
    """Single fuzz iteration: feed samples and check the orientation."""
    fdp = atheris.FuzzedDataProvider(data)
    mode = CalibrationMode.AUTO if fdp.ConsumeBool() else CalibrationMode.BASIC
    motion = GamepadMotion(
        calibration_mode=mode,
        symmetric_trigger=fdp.ConsumeBool(),
        legacy_gravity_min_z=fdp.ConsumeBool(),
    )
    if fdp.ConsumeBool():
        motion.start_continuous_calibration()
    while fdp.remaining_bytes() >= 28:
        gyro = [fdp.ConsumeFloatInRange(-MAX_GYRO, MAX_GYRO) for _ in range(3)]
        accel = [fdp.ConsumeFloatInRange(-MAX_ACCEL, MAX_ACCEL) for _ in range(3)]
        dt = fdp.ConsumeFloatInRange(0.0, MAX_DT)
        motion.process_motion(*gyro, *accel, dt)
    w, x, y, z = motion.get_orientation()
    length = math.sqrt(w * w + x * x + y * y + z * z)
    if not math.isfinite(length) or abs(length - 1.0) > 1e-6:
        raise RuntimeError("orientation left the unit sphere: %r" % ((w, x, y, z),))


def main() -> None:
    atheris.Setup(sys.argv, test_one_input)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
