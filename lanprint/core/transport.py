# -*- coding: utf-8 -*-
# lanprint/core/transport.py
"""
One-shot raw TCP (port 9100) client. Every call opens its own socket and
releases it on all paths; failures come back as classified results.
"""
from __future__ import annotations

import errno
import socket

from loguru import logger

from lanprint.core.models import ConnectParams, ErrorKind, OperationResult, PrinterEndpoint

_UNREACHABLE = {errno.EHOSTUNREACH, errno.ENETUNREACH, errno.ECONNREFUSED}


class _ConnectFailed(Exception):
    def __init__(self, result: OperationResult) -> None:
        super().__init__(result.detail)
        self.result = result


def _refused(ep: PrinterEndpoint) -> OperationResult:
    return OperationResult.fail(ErrorKind.CONNECTION_REFUSED, f"No se pudo conectar a {ep.address}")


def _timed_out(ep: PrinterEndpoint) -> OperationResult:
    return OperationResult.fail(ErrorKind.TIMEOUT, f"Timeout al conectar a {ep.address}")


def _connect(ep: PrinterEndpoint, timeout: float) -> socket.socket:
    try:
        return socket.create_connection((ep.host, ep.port), timeout=timeout)
    except socket.timeout:
        raise _ConnectFailed(_timed_out(ep))
    except (ConnectionRefusedError, socket.gaierror):
        raise _ConnectFailed(_refused(ep))
    except OSError as e:
        if e.errno in _UNREACHABLE:
            raise _ConnectFailed(_refused(ep))
        raise _ConnectFailed(OperationResult.fail(ErrorKind.IO_ERROR, str(e)))


def _release(sock: socket.socket, ep: PrinterEndpoint, half_close: bool = False) -> None:
    # printers often drop the link right after the payload; never fail here
    if half_close:
        try:
            sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            logger.debug(f"shutdown {ep.address}: {e}")
    try:
        sock.close()
    except OSError as e:
        logger.debug(f"close {ep.address}: {e}")


def probe(endpoint: PrinterEndpoint, timeout_ms: int = 2000) -> OperationResult:
    """Connect then close. Success iff connect() returned within the deadline."""
    try:
        sock = _connect(endpoint, timeout_ms / 1000.0)
    except _ConnectFailed as e:
        logger.debug(f"probe {endpoint.address} failed: {e.result.error_kind.value}")
        return e.result
    except Exception as e:
        logger.exception(f"probe {endpoint.address} crashed")
        return OperationResult.fail(ErrorKind.UNKNOWN, f"Error de conexión: {e}")
    _release(sock, endpoint)
    return OperationResult.ok(f"Conectado a {endpoint.address}", ip=endpoint.host, port=endpoint.port)


def send(params: ConnectParams, data: bytes, error_prefix: str = "Error de conexión") -> OperationResult:
    """
    Connect, write the whole buffer, flush and close. ``error_prefix`` heads
    the detail of unclassified failures.
    """
    ep = params.endpoint
    if not data:
        logger.warning(f"send {ep.address}: empty payload rejected")
        return OperationResult.fail(ErrorKind.INVALID_ARGUMENT, "data")
    try:
        sock = _connect(ep, params.connect_timeout)
    except _ConnectFailed as e:
        logger.warning(f"send {ep.address}: {e.result.detail}")
        return e.result
    except Exception as e:
        logger.exception(f"send {ep.address}: connect crashed")
        return OperationResult.fail(ErrorKind.UNKNOWN, f"{error_prefix}: {e}")

    written = False
    try:
        sock.settimeout(params.write_timeout)
        sock.sendall(data)
        written = True
    except socket.timeout:
        logger.warning(f"send {ep.address}: write timed out")
        return _timed_out(ep)
    except OSError as e:
        logger.warning(f"send {ep.address}: write failed: {e}")
        return OperationResult.fail(ErrorKind.IO_ERROR, str(e) or e.__class__.__name__)
    except Exception as e:
        logger.exception(f"send {ep.address}: write crashed")
        return OperationResult.fail(ErrorKind.UNKNOWN, f"{error_prefix}: {e}")
    finally:
        _release(sock, ep, half_close=written)

    logger.info(f"Sent {len(data)} bytes to {ep.address}")
    return OperationResult.ok(f"Enviados {len(data)} bytes a {ep.address}", ip=ep.host, port=ep.port)
