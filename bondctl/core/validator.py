"""Inbound bond request validation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from bondctl.core.errors import MissingAddressError, ValidationError
from bondctl.core.model import BondRequest


def validate(raw_address: Any) -> str:
    """Return the address unchanged, or raise if it is absent.

    Format checking beyond "present and non-empty" is left to the adapter.
    """
    if raw_address is None or raw_address == "":
        raise MissingAddressError("Device address is null")
    if not isinstance(raw_address, str):
        raise ValidationError(f"Device address must be a string, got {type(raw_address).__name__}")
    return raw_address


def bond_request(arguments: Mapping[str, Any]) -> BondRequest:
    return BondRequest(address=validate(arguments.get("address")))
