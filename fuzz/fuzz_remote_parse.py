#!/usr/bin/env python3
"""
LibFuzzer harness for sample protocol parsing (RemoteSource._parse_line).

Feed raw bytes (UTF-8). Fuzzer exercises JSON parsing and sample validation.
Run: python fuzz/fuzz_remote_parse.py fuzz/corpus/remote_parse/ [options]
"""

import math
import sys

try:
    import atheris
except ImportError:
    print("Install atheris: pip install atheris")
    sys.exit(1)

with atheris.instrument_imports():
    from gamepad_motion.sources.remote import RemoteSource


def test_one_input(data: bytes) -> None:
    """Single fuzz iteration: decode data as UTF-8 and parse as one sample line."""
    try:
        line = data.decode("utf-8").strip()
    except UnicodeDecodeError:
        return
    source = RemoteSource(host="127.0.0.1", port=0)
    try:
        source._parse_line(line)
    except RecursionError:
        return
    sample = source.read()
    if sample is None:
        return
    gyro, accel, dt = sample
    if not all(math.isfinite(v) for v in gyro + accel):
        raise RuntimeError("non-finite value accepted: %r" % (sample,))
    if dt is not None and (not math.isfinite(dt) or dt < 0.0):
        raise RuntimeError("invalid dt accepted: %r" % (dt,))


def main() -> None:
    atheris.Setup(sys.argv, test_one_input)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
