"""Bonding service: the only place bond outcomes are classified."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TypeVar

from bondctl.adapters.base import AdapterHandle, BluetoothAdapter
from bondctl.core.model import Bonded, BondResult, Failed, NotBonded

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class BondingService:
    def __init__(self, adapter: AdapterHandle) -> None:
        self.adapter = adapter

    def request_bond(self, address: str) -> BondResult:
        """Submit one bond request for `address` and classify the outcome.

        A `Bonded` result means the host accepted the request; the pairing
        handshake itself finishes later and is not observed here. Faults from
        the adapter never escape: they come back as `Failed`.
        """
        outcome = _call_adapter(address, lambda: self._invoke(address))
        if isinstance(outcome, Failed):
            return outcome
        if outcome:
            LOGGER.info("Bond request initiated for %s", address)
            return Bonded(address=address)
        LOGGER.info("Bond request not initiated for %s", address)
        return NotBonded(address=address)

    async def request_bond_async(self, address: str) -> BondResult:
        return await asyncio.to_thread(self.request_bond, address)

    def _invoke(self, address: str) -> bool:
        adapter: BluetoothAdapter = self.adapter.get()
        device = adapter.get_remote_device(address)
        return bool(device.create_bond())


def _call_adapter(address: str, call: Callable[[], T]) -> T | Failed:
    try:
        return call()
    except Exception as exc:
        LOGGER.warning("Bond request for %s failed: %s", address, exc, exc_info=True)
        return Failed(address=address, reason=f"{type(exc).__name__}: {exc}")
