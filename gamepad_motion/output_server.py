"""
TCP server that streams motion state lines to clients.
"""

import logging
import socket
import threading
from typing import Dict, Optional, Tuple

from gamepad_motion.report import format_state_line

logger = logging.getLogger(__name__)

SEND_TIMEOUT = 0.5  # s, a client slower than this is dropped

Address = Tuple[str, int]


class StateTcpServer:
    """
    Streams newline-terminated JSON state lines to every connected client.

    The listening socket is non-blocking; the main loop polls it with
    select() and calls accept_new(). send_line() may be called from any
    thread.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 2948) -> None:
        self._host = host
        self._port = port
        self._sock: Optional[socket.socket] = None
        self._clients: Dict[socket.socket, Address] = {}
        self._lock = threading.Lock()

    def start(self) -> bool:
        """Bind and listen; return True on success."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self._host, self._port))
            sock.listen(4)
            sock.setblocking(False)
        except OSError as e:
            logger.error("State server bind failed %s:%s: %s", self._host, self._port, e)
            sock.close()
            return False
        self._sock = sock
        logger.info("State output on %s:%s", self._host, self._port)
        return True

    def stop(self) -> None:
        """Close all clients, then the listening socket."""
        with self._lock:
            clients = list(self._clients)
            self._clients.clear()
        for client in clients:
            _close_quietly(client)
        if self._sock is not None:
            _close_quietly(self._sock)
            self._sock = None

    def accept_new(self) -> None:
        """Accept one pending connection, if any."""
        if self._sock is None:
            return
        try:
            client, addr = self._sock.accept()
        except BlockingIOError:
            return
        except OSError as e:
            logger.debug("State accept error: %s", e)
            return
        client.settimeout(SEND_TIMEOUT)
        with self._lock:
            self._clients[client] = addr
            total = len(self._clients)
        logger.info("State client %s connected (total %d)", addr, total)

    def send_state(self, state: dict) -> None:
        self.send_line(format_state_line(state))

    def send_line(self, line: str) -> None:
        """Send one line to all clients; clients that fail are dropped."""
        if not line:
            return
        if not line.endswith("\n"):
            line += "\n"
        data = line.encode("utf-8")
        with self._lock:
            failed = []
            for client, addr in self._clients.items():
                try:
                    client.sendall(data)
                except OSError as e:
                    logger.info("State client %s dropped: %s", addr, e)
                    failed.append(client)
            for client in failed:
                del self._clients[client]
        for client in failed:
            _close_quietly(client)

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def get_socket(self) -> Optional[socket.socket]:
        """Listening socket, for select()."""
        return self._sock


def _close_quietly(sock: socket.socket) -> None:
    try:
        sock.close()
    except OSError:
        pass
