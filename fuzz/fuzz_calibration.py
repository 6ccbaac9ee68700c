#!/usr/bin/env python3
"""
LibFuzzer harness for calibration JSON (GyroCalibration.from_dict).

Feed raw bytes as JSON. Fuzzer exercises from_dict, _to_triple and _to_float.
Run: python fuzz/fuzz_calibration.py fuzz/corpus/calibration/ [options]
"""

import json
import sys

try:
    import atheris
except ImportError:
    print("Install atheris: pip install atheris")
    sys.exit(1)

with atheris.instrument_imports():
    from gamepad_motion.calibration import GyroCalibration


def test_one_input(data: bytes) -> None:
    """Single fuzz iteration: parse JSON and build GyroCalibration."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return
    try:
        obj = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return
    cal = GyroCalibration.from_dict(obj)
    cal.get_offset()
    cal.push_sample(0.1, -0.1, 0.0, 1.0)
    cal.to_dict()


def main() -> None:
    atheris.Setup(sys.argv, test_one_input)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
