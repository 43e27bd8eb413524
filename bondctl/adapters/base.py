"""Adapter interfaces and the shared default-adapter handle."""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable
from typing import Protocol

from bondctl.core.errors import AdapterUnavailableError, DeviceResolutionError

LOGGER = logging.getLogger(__name__)

_MAC_RE = re.compile(r"^[0-9A-F]{2}(?::[0-9A-F]{2}){5}$")


class RemoteDevice(Protocol):
    address: str

    def create_bond(self) -> bool:
        """Start bonding; True if the request was initiated."""


class BluetoothAdapter(Protocol):
    def get_remote_device(self, address: str) -> RemoteDevice:
        """Resolve a remote device reference from a hardware address."""


def normalize_address(address: str) -> str:
    normalized = address.strip().upper()
    if not _MAC_RE.match(normalized):
        raise DeviceResolutionError(f"{address} is not a valid Bluetooth address")
    return normalized


class AdapterHandle:
    """Lazily obtained, process-wide reference to the default adapter.

    The factory runs on first use only. A factory that raises or returns
    None is not cached, so a later call gets another chance once the host
    radio shows up.
    """

    def __init__(self, factory: Callable[[], BluetoothAdapter | None]) -> None:
        self._factory = factory
        self._adapter: BluetoothAdapter | None = None
        self._lock = threading.Lock()

    @classmethod
    def of(cls, adapter: BluetoothAdapter) -> AdapterHandle:
        return cls(lambda: adapter)

    def get(self) -> BluetoothAdapter:
        with self._lock:
            if self._adapter is None:
                adapter = self._factory()
                if adapter is None:
                    raise AdapterUnavailableError("No default Bluetooth adapter available")
                LOGGER.debug("Resolved default adapter %r", adapter)
                self._adapter = adapter
            return self._adapter
