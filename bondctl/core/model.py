"""Core data models shared by the service, channel, and CLI."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class BondRequest:
    address: str


@dataclass(frozen=True)
class Bonded:
    address: str

    @property
    def bonded(self) -> bool:
        return True


@dataclass(frozen=True)
class NotBonded:
    address: str

    @property
    def bonded(self) -> bool:
        return False


@dataclass(frozen=True)
class Failed:
    address: str
    reason: str

    @property
    def bonded(self) -> bool:
        return False


BondResult = Union[Bonded, NotBonded, Failed]


@dataclass(frozen=True)
class MethodCall:
    method: str
    arguments: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Success:
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"status": "success", "result": self.value}


@dataclass(frozen=True)
class Error:
    code: str
    message: str
    details: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "error",
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


@dataclass(frozen=True)
class NotImplementedResponse:
    def to_dict(self) -> dict[str, Any]:
        return {"status": "not_implemented"}


MethodResponse = Union[Success, Error, NotImplementedResponse]


@dataclass(frozen=True)
class Settings:
    backend: str = "bluetoothctl"
    controller: str | None = None
    timeout_s: float = 10.0
    surface_faults: bool = False
