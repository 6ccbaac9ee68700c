#!/usr/bin/env python3
"""
LibFuzzer harness for calibration API request handling (_handle_request).

Feed raw bytes as JSON. Fuzzer exercises API request parsing and validation.
Run: python fuzz/fuzz_calibration_api.py fuzz/corpus/calibration_api/ [options]
"""

import json
import sys

try:
    import atheris
except ImportError:
    print("Install atheris: pip install atheris")
    sys.exit(1)

with atheris.instrument_imports():
    from gamepad_motion.calibration_api import CalibrationManager, _handle_request
    from gamepad_motion.gamepad import GamepadMotion


def test_one_input(data: bytes) -> None:
    """Single fuzz iteration: parse JSON and handle as calibration API request."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return
    try:
        request = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return
    manager = CalibrationManager(GamepadMotion())
    response = _handle_request(manager, request, 100.0)
    json.dumps(response)
    manager.process_motion((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0.01)


def main() -> None:
    atheris.Setup(sys.argv, test_one_input)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
