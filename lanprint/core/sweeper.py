# -*- coding: utf-8 -*-
# lanprint/core/sweeper.py
from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional

from loguru import logger

from lanprint.core import transport
from lanprint.core.models import ErrorKind, OperationResult, PrinterEndpoint, ScanRange

ProbeFn = Callable[[PrinterEndpoint, int], OperationResult]

DEFAULT_PARALLELISM = 16
DEFAULT_PROBE_TIMEOUT_MS = 2000


class Sweeper:
    """
    Bounded parallel connect-sweep over a host range.

    Reports the lowest-numbered responder: results are read in ascending
    host order, so a winner is returned once every lower host has failed.
    Probes still pending at that point are cancelled or left to finish
    with their results dropped.
    """

    def __init__(self, probe: ProbeFn = transport.probe, max_parallel: int = DEFAULT_PARALLELISM) -> None:
        if max_parallel < 1:
            raise ValueError("max_parallel must be >= 1")
        self._probe = probe
        self.max_parallel = max_parallel

    def _safe_probe(self, ep: PrinterEndpoint, timeout_ms: int) -> OperationResult:
        try:
            return self._probe(ep, timeout_ms)
        except Exception as e:
            logger.exception(f"probe {ep.address} crashed")
            return OperationResult.fail(ErrorKind.UNKNOWN, str(e))

    def sweep(self, scan: ScanRange, timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS) -> OperationResult:
        endpoints = [PrinterEndpoint(host, scan.port) for host in scan.hosts()]
        logger.info(f"Scanning {scan.label} port {scan.port} ({len(endpoints)} hosts)")

        pool = ThreadPoolExecutor(max_workers=min(self.max_parallel, len(endpoints)), thread_name_prefix="sweep")
        futures: List[Future] = [pool.submit(self._safe_probe, ep, timeout_ms) for ep in endpoints]
        index: Dict[Future, int] = {f: i for i, f in enumerate(futures)}
        results: List[Optional[OperationResult]] = [None] * len(futures)
        pending = set(futures)
        cursor = 0
        winner: Optional[PrinterEndpoint] = None
        try:
            while cursor < len(futures) and winner is None:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for f in done:
                    results[index[f]] = f.result()
                while cursor < len(futures) and results[cursor] is not None:
                    if results[cursor].success:
                        winner = endpoints[cursor]
                        break
                    cursor += 1
        finally:
            for f in pending:
                f.cancel()
            pool.shutdown(wait=False)

        if winner is not None:
            logger.info(f"Printer found at {winner.address}")
            return OperationResult.ok(f"Impresora encontrada en {winner.address}", ip=winner.host, port=winner.port)

        logger.info(f"No printer found in {scan.label}")
        return OperationResult.fail(
            ErrorKind.NO_PRINTER_FOUND,
            f"No se encontró ninguna impresora en el rango {scan.label}",
        )
