"""Pytest configuration for the LAN printer service tests."""

from __future__ import annotations

import socket
import sys
import threading
from pathlib import Path
from typing import Generator, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lanprint import config  # noqa: E402
from lanprint.config import Settings  # noqa: E402


class FakePrinter:
    """Loopback TCP listener standing in for a RAW (9100) printer.

    Each accepted connection is read to EOF; the bytes are kept in
    ``received`` (one entry per connection) unless ``discard`` is set.
    """

    def __init__(self, host: str = "127.0.0.1", discard: bool = False) -> None:
        self.discard = discard
        self.received: List[bytes] = []
        self.connections = 0
        self._cond = threading.Condition()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind((host, 0))
        self._sock.listen(64)
        self.host, self.port = self._sock.getsockname()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while True:
            try:
                conn, _ = self._sock.accept()
            except OSError:
                return
            chunks = []
            with conn:
                conn.settimeout(5)
                try:
                    while True:
                        chunk = conn.recv(4096)
                        if not chunk:
                            break
                        chunks.append(chunk)
                except OSError:
                    pass
            with self._cond:
                self.connections += 1
                self.received.append(b"" if self.discard else b"".join(chunks))
                self._cond.notify_all()

    def wait_for(self, count: int = 1, timeout: float = 5.0) -> List[bytes]:
        with self._cond:
            self._cond.wait_for(lambda: self.connections >= count, timeout=timeout)
            return list(self.received)

    def close(self) -> None:
        self._sock.close()


def free_port() -> int:
    """Return a loopback port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture()
def fake_printer() -> Generator[FakePrinter, None, None]:
    printer = FakePrinter()
    yield printer
    printer.close()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        connect_timeout_ms=2000,
        write_timeout_ms=2000,
        probe_timeout_ms=500,
        log_path=str(tmp_path / "lanprint-test.json"),
    )


@pytest.fixture(autouse=True)
def _isolated_settings(settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "_settings", settings)
