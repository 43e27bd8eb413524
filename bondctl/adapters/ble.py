"""Bleak-backed adapter using the platform pairing API."""

from __future__ import annotations

import asyncio
import logging
import re
import subprocess
import sys

from bondctl.adapters.base import normalize_address
from bondctl.adapters.bluetoothctl import is_paired
from bondctl.core.errors import BondInvocationError, DeviceResolutionError

LOGGER = logging.getLogger(__name__)

# CoreBluetooth hides hardware addresses behind per-host UUIDs.
_UUID_RE = re.compile(r"^[0-9A-F]{8}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{12}$", re.IGNORECASE)


class BleakDevice:
    def __init__(self, address: str, *, timeout_s: float) -> None:
        self.address = address
        self.timeout_s = timeout_s

    def already_paired(self) -> bool:
        """Ask BlueZ for an existing pairing; other platforms cannot tell, so False."""
        if not sys.platform.startswith("linux"):
            return False
        try:
            return is_paired(self.address, self.timeout_s)
        except (FileNotFoundError, subprocess.TimeoutExpired):
            LOGGER.debug("Could not query BlueZ pairing state for %s", self.address, exc_info=True)
            return False

    def create_bond(self) -> bool:
        if self.already_paired():
            LOGGER.info("%s is already bonded", self.address)
            return False

        try:
            from bleak import BleakClient  # type: ignore
        except Exception as exc:  # pragma: no cover - import failure path
            raise BondInvocationError(
                "BLE bonding requires 'bleak'. Install dependency and retry."
            ) from exc

        async def _run() -> bool:
            async with BleakClient(self.address, timeout=self.timeout_s) as client:
                paired = await asyncio.wait_for(client.pair(), timeout=self.timeout_s)
                # Newer bleak releases return None on success and raise on failure.
                return True if paired is None else bool(paired)

        try:
            return asyncio.run(_run())
        except asyncio.TimeoutError as exc:
            raise BondInvocationError(
                f"BLE pairing with {self.address} timed out after {self.timeout_s}s"
            ) from exc
        except Exception as exc:
            raise BondInvocationError(f"BLE pairing with {self.address} failed: {exc}") from exc

    def __repr__(self) -> str:
        return f"BleakDevice({self.address!r})"


class BleakAdapter:
    def __init__(self, *, timeout_s: float = 10.0) -> None:
        self.timeout_s = timeout_s

    def get_remote_device(self, address: str) -> BleakDevice:
        candidate = address.strip()
        if _UUID_RE.match(candidate):
            return BleakDevice(candidate.upper(), timeout_s=self.timeout_s)
        try:
            normalized = normalize_address(candidate)
        except DeviceResolutionError:
            raise DeviceResolutionError(
                f"{address} is neither a Bluetooth address nor a CoreBluetooth identifier"
            ) from None
        LOGGER.debug("Resolved BLE device %s", normalized)
        return BleakDevice(normalized, timeout_s=self.timeout_s)
