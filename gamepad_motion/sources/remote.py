"""
Remote sample source: TCP server accepting JSON lines from a controller bridge.

Protocol: see gamepad_motion.sources.base. Samples are queued in arrival
order and handed out one per read(); when the queue is full the oldest
samples are dropped. Samples without "dt" are stamped on arrival with the
time since the previous sample from the same client.
"""

import json
import logging
import socket
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

from gamepad_motion.sources.base import MotionSample, MotionSource, parse_sample

logger = logging.getLogger(__name__)

MAX_QUEUED_SAMPLES = 1024


class RemoteSource(MotionSource):
    """
    Sample source fed by a remote TCP client.

    Start the server with start(); then read() returns queued samples.
    """

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 2949,
        max_queued: int = MAX_QUEUED_SAMPLES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._host = host
        self._port = port
        self._lock = threading.Lock()
        self._samples: Deque[MotionSample] = deque(maxlen=max_queued)
        self._rejected = 0
        self._clock = clock
        self._last_arrival: Optional[float] = None
        self._sock: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._shutdown = False

    def start(self) -> bool:
        """Bind and start the listener thread. Return True on success."""
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self._sock.bind((self._host, self._port))
            self._sock.listen(1)
            self._sock.settimeout(1.0)
            self._thread = threading.Thread(target=self._accept_loop, daemon=True)
            self._thread.start()
            logger.info(
                "Remote source listening on %s:%s", self._host, self._port
            )
            return True
        except OSError as e:
            logger.error("Remote source bind failed: %s", e)
            return False

    def stop(self) -> None:
        """Stop the listener and close the socket."""
        self._shutdown = True
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None

    def _accept_loop(self) -> None:
        while not self._shutdown and self._sock:
            try:
                client, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                if not self._shutdown:
                    logger.debug("Remote accept error")
                break
            logger.info("Remote client connected from %s", addr)
            with self._lock:
                self._last_arrival = None
            try:
                client.settimeout(5.0)
                with client.makefile(mode="r", encoding="utf-8") as f:
                    for line in f:
                        if self._shutdown:
                            break
                        line = line.strip()
                        if not line:
                            continue
                        self._parse_line(line)
            except (ConnectionResetError, BrokenPipeError, OSError) as e:
                logger.debug("Remote client error: %s", e)
            except UnicodeDecodeError as e:
                logger.debug("Remote client sent invalid UTF-8: %s", e)
            finally:
                try:
                    client.close()
                except OSError:
                    pass
                logger.info("Remote client disconnected")

    def _parse_line(self, line: str) -> None:
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            data = None
        sample = parse_sample(data)
        with self._lock:
            if sample is None:
                self._rejected += 1
                return
            gyro, accel, dt = sample
            now = self._clock()
            if dt is None and self._last_arrival is not None:
                dt = now - self._last_arrival
            self._last_arrival = now
            self._samples.append((gyro, accel, dt))

    @property
    def rejected(self) -> int:
        """Number of lines rejected so far."""
        with self._lock:
            return self._rejected

    def pending(self) -> int:
        with self._lock:
            return len(self._samples)

    def read(self) -> Optional[MotionSample]:
        with self._lock:
            if self._samples:
                return self._samples.popleft()
        return None


def create_remote_source(host: str, port: int) -> Optional[RemoteSource]:
    """Create and start the remote source. Returns None on bind failure."""
    source = RemoteSource(host=host, port=port)
    if source.start():
        return source
    return None
