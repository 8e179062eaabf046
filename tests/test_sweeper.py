"""Tests for the autodetect sweep."""

import sys
import threading
import time

import pytest

from conftest import FakePrinter
from lanprint.core.models import ErrorKind, OperationResult, PrinterEndpoint, ScanRange
from lanprint.core.sweeper import Sweeper


class _FakeProbe:
    """Probe stub: ``hits`` maps last octet -> delay before answering."""

    def __init__(self, hits=None, miss_delay=0.0):
        self.hits = hits or {}
        self.miss_delay = miss_delay
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, ep: PrinterEndpoint, timeout_ms: int) -> OperationResult:
        octet = int(ep.host.rsplit(".", 1)[1])
        with self._lock:
            self.calls.append(octet)
        if octet in self.hits:
            time.sleep(self.hits[octet])
            return OperationResult.ok("up", ep.host, ep.port)
        time.sleep(self.miss_delay)
        return OperationResult.fail(ErrorKind.CONNECTION_REFUSED, "down")


class TestSweep:
    """Winner selection and misses."""

    def test_single_host_range_probes_once(self):
        probe = _FakeProbe()
        res = Sweeper(probe).sweep(ScanRange("192.168.1", 50, 50, 9100))
        assert probe.calls == [50]
        assert res.error_kind is ErrorKind.NO_PRINTER_FOUND

    def test_no_printer_message_names_range(self):
        res = Sweeper(_FakeProbe()).sweep(ScanRange("192.168.1", 100, 110, 9100))
        assert not res.success
        assert res.detail == "No se encontró ninguna impresora en el rango 192.168.1.100-110"

    def test_hit_returns_endpoint(self):
        res = Sweeper(_FakeProbe({105: 0})).sweep(ScanRange("192.168.1", 100, 110, 9100))
        assert res.success
        assert (res.ip, res.port) == ("192.168.1.105", 9100)
        assert res.message == "Impresora encontrada en 192.168.1.105:9100"

    def test_lowest_responder_wins(self):
        probe = _FakeProbe({103: 0.2, 107: 0.0})
        res = Sweeper(probe).sweep(ScanRange("192.168.1", 100, 110, 9100))
        assert res.ip == "192.168.1.103"

    def test_probes_run_in_parallel(self):
        probe = _FakeProbe({110: 0.0}, miss_delay=0.3)
        start = time.monotonic()
        res = Sweeper(probe, max_parallel=16).sweep(ScanRange("192.168.1", 100, 110, 9100))
        assert res.ip == "192.168.1.110"
        assert time.monotonic() - start < 11 * 0.3

    def test_does_not_wait_for_slow_higher_hosts(self):
        probe = _FakeProbe({101: 0.0, 102: 1.5})
        start = time.monotonic()
        res = Sweeper(probe).sweep(ScanRange("10.0.0", 101, 102, 9100))
        assert res.ip == "10.0.0.101"
        assert time.monotonic() - start < 1.0

    def test_crashing_probe_counts_as_miss(self):
        def _probe(ep, timeout_ms):
            if ep.host.endswith(".1"):
                raise RuntimeError("boom")
            return OperationResult.ok("up", ep.host, ep.port)

        res = Sweeper(_probe).sweep(ScanRange("10.0.0", 1, 2, 9100))
        assert res.ip == "10.0.0.2"

    def test_invalid_parallelism(self):
        with pytest.raises(ValueError):
            Sweeper(max_parallel=0)


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="needs the whole 127.0.0.0/8 on loopback")
class TestLoopbackSweep:
    """Real sockets across 127.0.0.N."""

    def test_finds_only_listener(self):
        printer = FakePrinter(host="127.0.0.105")
        try:
            start = time.monotonic()
            res = Sweeper().sweep(ScanRange("127.0.0", 100, 110, printer.port), timeout_ms=2000)
            assert res.success
            assert (res.ip, res.port) == ("127.0.0.105", printer.port)
            assert time.monotonic() - start < 10 * 2.0
        finally:
            printer.close()
