"""Stable public API for building tooling on top of bondctl.

This module is the supported integration surface for third-party callers
(front-end bridges, scripts, services). Avoid importing from internal modules
unless intentionally depending on non-stable internals.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from bondctl.adapters.base import AdapterHandle, BluetoothAdapter, RemoteDevice
from bondctl.adapters.ble import BleakAdapter
from bondctl.adapters.bluetoothctl import BluetoothctlAdapter
from bondctl.channel import CHANNEL, CREATE_BOND, MethodChannel
from bondctl.core.config import load_settings
from bondctl.core.errors import (
    AdapterFault,
    AdapterUnavailableError,
    BondctlError,
    BondInvocationError,
    ConfigError,
    DeviceResolutionError,
    MissingAddressError,
    ValidationError,
)
from bondctl.core.model import (
    Bonded,
    BondResult,
    Error,
    Failed,
    MethodCall,
    MethodResponse,
    NotBonded,
    NotImplementedResponse,
    Settings,
    Success,
)
from bondctl.core.service import BondingService
from bondctl.core.validator import validate

__all__ = [
    "BondctlError",
    "ValidationError",
    "MissingAddressError",
    "ConfigError",
    "AdapterFault",
    "AdapterUnavailableError",
    "DeviceResolutionError",
    "BondInvocationError",
    "Bonded",
    "NotBonded",
    "Failed",
    "BondResult",
    "MethodCall",
    "MethodResponse",
    "Success",
    "Error",
    "NotImplementedResponse",
    "Settings",
    "AdapterHandle",
    "BluetoothAdapter",
    "RemoteDevice",
    "CHANNEL",
    "CREATE_BOND",
    "Client",
    "adapter_factory",
]


def adapter_factory(settings: Settings) -> Callable[[], BluetoothAdapter]:
    """Return a factory for the default adapter of the configured backend."""
    if settings.backend == "ble":
        return lambda: BleakAdapter(timeout_s=settings.timeout_s)
    return lambda: BluetoothctlAdapter.default(settings.controller, timeout_s=settings.timeout_s)


class Client:
    """Public client for submitting bond requests.

    A `Client` wraps settings loading, lazy default-adapter resolution, and
    the `createBond` method channel. Pass `adapter` to substitute a fake or a
    custom backend; otherwise the configured backend is resolved on first use.
    """

    def __init__(
        self,
        *,
        adapter: BluetoothAdapter | None = None,
        settings: Settings | None = None,
        config_path: Path | None = None,
    ) -> None:
        self.settings = settings or load_settings(config_path)
        if adapter is not None:
            handle = AdapterHandle.of(adapter)
        else:
            handle = AdapterHandle(adapter_factory(self.settings))
        self._service = BondingService(handle)
        self._channel = MethodChannel(self._service, surface_faults=self.settings.surface_faults)

    def validate(self, address: str | None) -> str:
        return validate(address)

    def create_bond(self, address: str) -> BondResult:
        return self._service.request_bond(validate(address))

    async def create_bond_async(self, address: str) -> BondResult:
        return await self._service.request_bond_async(validate(address))

    def call(self, method: str, arguments: Mapping[str, Any] | None = None) -> MethodResponse:
        return self._channel.handle(MethodCall(method=method, arguments=arguments or {}))

    async def call_async(self, method: str, arguments: Mapping[str, Any] | None = None) -> MethodResponse:
        return await self._channel.handle_async(MethodCall(method=method, arguments=arguments or {}))

    def call_json(self, line: str) -> dict[str, Any]:
        return self._channel.handle_json(line)
