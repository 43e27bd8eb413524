from __future__ import annotations

import asyncio
import logging
import threading

import pytest

from bondctl.adapters.base import AdapterHandle
from bondctl.core.errors import AdapterUnavailableError, DeviceResolutionError
from bondctl.core.model import Bonded, Failed, NotBonded
from bondctl.core.service import BondingService


class FakeDevice:
    def __init__(self, address: str, outcome: bool | Exception) -> None:
        self.address = address
        self.outcome = outcome
        self.calls = 0

    def create_bond(self) -> bool:
        self.calls += 1
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeAdapter:
    def __init__(self, outcomes: dict[str, bool | Exception]) -> None:
        self.outcomes = outcomes
        self.devices: dict[str, FakeDevice] = {}

    def get_remote_device(self, address: str) -> FakeDevice:
        if address not in self.outcomes:
            raise DeviceResolutionError(f"{address} is not a valid Bluetooth address")
        device = self.devices.setdefault(address, FakeDevice(address, self.outcomes[address]))
        return device


def _service(outcomes: dict[str, bool | Exception]) -> tuple[BondingService, FakeAdapter]:
    adapter = FakeAdapter(outcomes)
    return BondingService(AdapterHandle.of(adapter)), adapter


def test_primitive_true_is_bonded() -> None:
    service, adapter = _service({"00:11:22:33:44:55": True})
    result = service.request_bond("00:11:22:33:44:55")
    assert result == Bonded(address="00:11:22:33:44:55")
    assert result.bonded is True
    assert adapter.devices["00:11:22:33:44:55"].calls == 1


def test_primitive_false_is_not_bonded() -> None:
    service, _ = _service({"00:11:22:33:44:55": False})
    result = service.request_bond("00:11:22:33:44:55")
    assert result == NotBonded(address="00:11:22:33:44:55")
    assert result.bonded is False


def test_primitive_fault_is_failed_and_never_raises() -> None:
    service, _ = _service({"00:11:22:33:44:55": RuntimeError("radio off")})
    result = service.request_bond("00:11:22:33:44:55")
    assert isinstance(result, Failed)
    assert result.address == "00:11:22:33:44:55"
    assert "RuntimeError" in result.reason
    assert "radio off" in result.reason


def test_device_resolution_fault_is_failed() -> None:
    service, _ = _service({})
    result = service.request_bond("zz")
    assert isinstance(result, Failed)
    assert "DeviceResolutionError" in result.reason


def test_missing_adapter_is_failed() -> None:
    service = BondingService(AdapterHandle(lambda: None))
    result = service.request_bond("00:11:22:33:44:55")
    assert isinstance(result, Failed)
    assert "AdapterUnavailableError" in result.reason


def test_adapter_factory_exception_is_failed() -> None:
    def factory():
        raise AdapterUnavailableError("No Bluetooth controller found")

    service = BondingService(AdapterHandle(factory))
    result = service.request_bond("00:11:22:33:44:55")
    assert isinstance(result, Failed)
    assert "No Bluetooth controller found" in result.reason


def test_single_attempt_per_call() -> None:
    service, adapter = _service({"00:11:22:33:44:55": RuntimeError("boom")})
    service.request_bond("00:11:22:33:44:55")
    assert adapter.devices["00:11:22:33:44:55"].calls == 1


def test_repeat_calls_may_differ() -> None:
    class FlipDevice:
        address = "00:11:22:33:44:55"

        def __init__(self) -> None:
            self.bonded = False

        def create_bond(self) -> bool:
            if self.bonded:
                return False
            self.bonded = True
            return True

    device = FlipDevice()

    class OneDeviceAdapter:
        def get_remote_device(self, address: str) -> FlipDevice:
            return device

    service = BondingService(AdapterHandle.of(OneDeviceAdapter()))
    assert isinstance(service.request_bond(device.address), Bonded)
    assert isinstance(service.request_bond(device.address), NotBonded)


def test_adapter_handle_resolves_once() -> None:
    created: list[FakeAdapter] = []

    def factory() -> FakeAdapter:
        adapter = FakeAdapter({"00:11:22:33:44:55": True})
        created.append(adapter)
        return adapter

    handle = AdapterHandle(factory)
    service = BondingService(handle)
    service.request_bond("00:11:22:33:44:55")
    service.request_bond("00:11:22:33:44:55")
    assert len(created) == 1


def test_adapter_handle_retries_after_missing_adapter() -> None:
    attempts: list[int] = []

    def factory():
        attempts.append(1)
        if len(attempts) == 1:
            return None
        return FakeAdapter({"00:11:22:33:44:55": True})

    handle = AdapterHandle(factory)
    with pytest.raises(AdapterUnavailableError):
        handle.get()
    assert handle.get() is handle.get()
    assert len(attempts) == 2


def test_concurrent_requests_are_independent() -> None:
    barrier = threading.Barrier(2, timeout=5)

    class BarrierDevice:
        def __init__(self, address: str, outcome: bool) -> None:
            self.address = address
            self.outcome = outcome

        def create_bond(self) -> bool:
            barrier.wait()
            return self.outcome

    class BarrierAdapter:
        def get_remote_device(self, address: str) -> BarrierDevice:
            return BarrierDevice(address, address.endswith("01"))

    service = BondingService(AdapterHandle.of(BarrierAdapter()))

    async def _run():
        return await asyncio.gather(
            service.request_bond_async("AA:BB:CC:DD:EE:01"),
            service.request_bond_async("AA:BB:CC:DD:EE:02"),
        )

    first, second = asyncio.run(_run())
    assert first == Bonded(address="AA:BB:CC:DD:EE:01")
    assert second == NotBonded(address="AA:BB:CC:DD:EE:02")


def test_fault_logged_as_warning_with_exception(caplog: pytest.LogCaptureFixture) -> None:
    service, _ = _service({"00:11:22:33:44:55": RuntimeError("radio off")})
    with caplog.at_level(logging.WARNING, logger="bondctl.core.service"):
        service.request_bond("00:11:22:33:44:55")

    records = [r for r in caplog.records if r.name == "bondctl.core.service"]
    assert len(records) == 1
    assert records[0].levelno == logging.WARNING
    assert "00:11:22:33:44:55" in records[0].getMessage()
    assert records[0].exc_info is not None
    assert isinstance(records[0].exc_info[1], RuntimeError)
