# -*- coding: utf-8 -*-
# lanprint/core/models.py
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional

from lanprint.core.exceptions import InvalidArgumentError

DEFAULT_PORT = 9100
MAX_TIMEOUT_MS = 30_000

_OCTETS_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid-argument"
    CONNECTION_REFUSED = "connection-refused"
    TIMEOUT = "timeout"
    IO_ERROR = "io-error"
    IMAGE_DECODE_ERROR = "image-decode-error"
    NO_PRINTER_FOUND = "no-printer-found"
    UNKNOWN = "unknown"


def _check_port(port: Any) -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidArgumentError("port", f"Invalid port: {port!r}")
    if not 1 <= port <= 65535:
        raise InvalidArgumentError("port", f"Port out of range: {port}")
    return port


@dataclass(frozen=True)
class PrinterEndpoint:
    host: str
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if not isinstance(self.host, str) or not self.host.strip():
            raise InvalidArgumentError("ip", "IP address is required")
        object.__setattr__(self, "host", self.host.strip())
        _check_port(self.port)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class ConnectParams:
    endpoint: PrinterEndpoint
    connect_timeout_ms: int = 5000
    write_timeout_ms: int = 5000

    def __post_init__(self) -> None:
        for name in ("connect_timeout_ms", "write_timeout_ms"):
            value = getattr(self, name)
            if not 0 < value <= MAX_TIMEOUT_MS:
                raise InvalidArgumentError(name, f"{name} must be in (0, {MAX_TIMEOUT_MS}], got {value}")

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000.0

    @property
    def write_timeout(self) -> float:
        return self.write_timeout_ms / 1000.0


@dataclass(frozen=True)
class ScanRange:
    """Contiguous block of hosts ``base_network.start .. base_network.end``."""

    base_network: str
    start_host: int
    end_host: int
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        m = _OCTETS_RE.match(self.base_network.strip()) if isinstance(self.base_network, str) else None
        if not m or any(int(o) > 255 for o in m.groups()):
            raise InvalidArgumentError("baseIp", f"Invalid base network: {self.base_network!r}")
        object.__setattr__(self, "base_network", ".".join(str(int(o)) for o in m.groups()))
        for name in ("start_host", "end_host"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 254:
                raise InvalidArgumentError(name, f"{name} must be between 1 and 254, got {value!r}")
        if self.start_host > self.end_host:
            raise InvalidArgumentError("startRange", f"Invalid range {self.start_host}-{self.end_host}")
        _check_port(self.port)

    def hosts(self) -> Iterator[str]:
        for n in range(self.start_host, self.end_host + 1):
            yield f"{self.base_network}.{n}"

    def __len__(self) -> int:
        return self.end_host - self.start_host + 1

    @property
    def label(self) -> str:
        return f"{self.base_network}.{self.start_host}-{self.end_host}"


@dataclass(frozen=True)
class RasterImage:
    """Packed 1-bpp bitmap, row-major, MSB = leftmost pixel, 1 = black."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Raster dimensions must be positive, got {self.width}x{self.height}")
        expected = self.width_bytes * self.height
        if len(self.data) != expected:
            raise ValueError(f"Raster data is {len(self.data)} bytes, expected {expected}")

    @property
    def width_bytes(self) -> int:
        return (self.width + 7) // 8


@dataclass(frozen=True)
class OperationResult:
    success: bool
    message: Optional[str] = None
    ip: Optional[str] = None
    port: Optional[int] = None
    error_kind: Optional[ErrorKind] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls, message: str, ip: Optional[str] = None, port: Optional[int] = None) -> "OperationResult":
        return cls(success=True, message=message, ip=ip, port=port)

    @classmethod
    def fail(cls, kind: ErrorKind, detail: str) -> "OperationResult":
        return cls(success=False, error_kind=ErrorKind(kind), detail=detail)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            out: Dict[str, Any] = {"success": True, "message": self.message}
            if self.ip is not None:
                out["ip"] = self.ip
                out["port"] = self.port
            return out
        # "error" is the key older clients match on
        return {"success": False, "error": self.detail, "detail": self.detail, "errorKind": self.error_kind.value}
