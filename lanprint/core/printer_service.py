# -*- coding: utf-8 -*-
# lanprint/core/printer_service.py
from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Mapping, Optional

from loguru import logger

from lanprint.config import Settings, get_settings
from lanprint.core import encoder, transport
from lanprint.core.exceptions import ImageDecodeError, InvalidArgumentError
from lanprint.core.models import ConnectParams, ErrorKind, OperationResult, PrinterEndpoint, ScanRange
from lanprint.core.sweeper import Sweeper
from lanprint.utils.image_tools import image_from_base64

MSG_CONNECTED = "Conectado vía TCP nativo (como Loyverse)"
MSG_PRINTED = "Impresión TCP nativa exitosa"
MSG_PRINTED_IMAGE = "Impresión con imagen exitosa"
MSG_DRAWER = "Caja abierta exitosamente"
ERR_PRINT = "Error de impresión"
ERR_DRAWER = "Error al abrir caja"


def _get_str(args: Mapping[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    value = args.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise InvalidArgumentError(key, f"{key} must be a string")
    return value


def _get_int(args: Mapping[str, Any], key: str, default: int) -> int:
    value = args.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidArgumentError(key, f"{key} must be an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidArgumentError(key, f"{key} must be an integer, got {value!r}")


class PrinterService:
    """
    Facade over the encoder, image tools, transport and sweeper.

    Arguments are validated on the caller's thread: a bad argument raises
    InvalidArgumentError right away. Everything else runs on the shared
    worker pool and comes back as a Future that always resolves to exactly
    one OperationResult.
    """

    def __init__(self, settings: Optional[Settings] = None, sweeper: Optional[Sweeper] = None) -> None:
        self.settings = settings or get_settings()
        self._sweeper = sweeper or Sweeper(max_parallel=self.settings.sweep_parallelism)
        self._pool: Optional[ThreadPoolExecutor] = None
        self._pool_lock = threading.Lock()

    # ---------- lifecycle ----------
    def _executor(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="printer")
            return self._pool

    def shutdown(self, wait: bool = True) -> None:
        with self._pool_lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=wait)

    def __enter__(self) -> "PrinterService":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()

    def status(self) -> Dict[str, Any]:
        return {
            "pool_active": self._pool is not None,
            "max_workers": self.settings.max_workers,
            "default_port": self.settings.default_port,
            "connect_timeout_ms": self.settings.connect_timeout_ms,
            "probe_timeout_ms": self.settings.probe_timeout_ms,
            "max_print_width": self.settings.max_print_width,
        }

    # ---------- public API ----------
    def test_connection(self, args: Mapping[str, Any]) -> "Future[OperationResult]":
        ep = self._endpoint(args)
        timeout_ms = self.settings.connect_timeout_ms

        def _do() -> OperationResult:
            res = transport.probe(ep, timeout_ms)
            if res.success:
                return OperationResult.ok(MSG_CONNECTED)
            return res

        return self._submit("testConnection", _do)

    def print_text(self, args: Mapping[str, Any]) -> "Future[OperationResult]":
        params = self._params(args)
        data = self._data(args)

        def _do() -> OperationResult:
            return self._send(params, encoder.text(data), MSG_PRINTED)

        return self._submit("print", _do)

    def print_with_image(self, args: Mapping[str, Any]) -> "Future[OperationResult]":
        params = self._params(args)
        data = self._data(args)
        image_b64 = _get_str(args, "imageBase64")
        if not image_b64:
            return self.print_text(args)
        max_width = self.settings.max_print_width

        def _do() -> OperationResult:
            try:
                raster = image_from_base64(image_b64, max_width)
            except ImageDecodeError as e:
                logger.warning(f"Logo skipped, printing text only: {e}")
                return self._send(params, encoder.text(data), MSG_PRINTED)
            return self._send(params, encoder.print_with_image(raster, data), MSG_PRINTED_IMAGE)

        return self._submit("printWithImage", _do)

    def open_drawer(self, args: Mapping[str, Any]) -> "Future[OperationResult]":
        params = self._params(args)

        def _do() -> OperationResult:
            return self._send(params, encoder.drawer_kick(), MSG_DRAWER, ERR_DRAWER)

        return self._submit("openDrawer", _do)

    def autodetect(self, args: Optional[Mapping[str, Any]] = None) -> "Future[OperationResult]":
        args = args or {}
        s = self.settings
        scan = ScanRange(
            base_network=_get_str(args, "baseIp", s.default_base_ip),
            start_host=_get_int(args, "startRange", s.default_start_range),
            end_host=_get_int(args, "endRange", s.default_end_range),
            port=_get_int(args, "port", s.default_port),
        )
        timeout_ms = s.probe_timeout_ms
        return self._submit("autodetect", lambda: self._sweeper.sweep(scan, timeout_ms))

    # ---------- internals ----------
    def _endpoint(self, args: Mapping[str, Any]) -> PrinterEndpoint:
        ip = _get_str(args, "ip")
        if not ip or not ip.strip():
            logger.warning("Rejected call without ip")
            raise InvalidArgumentError("ip", "IP address is required")
        return PrinterEndpoint(ip, _get_int(args, "port", self.settings.default_port))

    def _params(self, args: Mapping[str, Any]) -> ConnectParams:
        return ConnectParams(
            self._endpoint(args),
            connect_timeout_ms=self.settings.connect_timeout_ms,
            write_timeout_ms=self.settings.write_timeout_ms,
        )

    @staticmethod
    def _data(args: Mapping[str, Any]) -> str:
        data = _get_str(args, "data")
        if not data:
            logger.warning("Rejected print without data")
            raise InvalidArgumentError("data", "Print data is required")
        return data

    @staticmethod
    def _send(params: ConnectParams, payload: bytes, message: str, error_prefix: str = ERR_PRINT) -> OperationResult:
        res = transport.send(params, payload, error_prefix)
        if res.success:
            return OperationResult.ok(message)
        return res

    def _submit(self, name: str, fn: Callable[[], OperationResult]) -> "Future[OperationResult]":
        def _task() -> OperationResult:
            try:
                return fn()
            except Exception as e:
                logger.exception(f"{name} failed unexpectedly")
                return OperationResult.fail(ErrorKind.UNKNOWN, f"Error inesperado: {e}")

        return self._executor().submit(_task)
