"""Method-channel boundary between a front end and the bonding service.

A front end sends `createBond` with an `address` argument and gets exactly
one response back: success(True), success(False), an error, or "not
implemented" for any other method.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from bondctl.core.errors import MissingAddressError, ValidationError
from bondctl.core.model import (
    Bonded,
    BondRequest,
    BondResult,
    Error,
    Failed,
    MethodCall,
    MethodResponse,
    NotImplementedResponse,
    Success,
)
from bondctl.core.service import BondingService
from bondctl.core.validator import bond_request

CHANNEL = "bondctl/bluetooth"
CREATE_BOND = "createBond"

INVALID_ARGUMENT = "INVALID_ARGUMENT"
INVALID_REQUEST = "INVALID_REQUEST"
BOND_FAILED = "BOND_FAILED"

LOGGER = logging.getLogger(__name__)


class MethodChannel:
    def __init__(self, service: BondingService, *, surface_faults: bool = False) -> None:
        self.service = service
        self.surface_faults = surface_faults

    def handle(self, call: MethodCall) -> MethodResponse:
        prepared = self._prepare(call)
        if not isinstance(prepared, BondRequest):
            return prepared
        return self._respond(self.service.request_bond(prepared.address))

    async def handle_async(self, call: MethodCall) -> MethodResponse:
        prepared = self._prepare(call)
        if not isinstance(prepared, BondRequest):
            return prepared
        return self._respond(await self.service.request_bond_async(prepared.address))

    def handle_json(self, line: str) -> dict[str, Any]:
        """Decode a single JSON request object and return the encoded response."""
        try:
            call = parse_call(json.loads(line))
        except json.JSONDecodeError as exc:
            return Error(INVALID_REQUEST, f"Malformed JSON: {exc.msg}").to_dict()
        except RecursionError:
            return Error(INVALID_REQUEST, "Request is nested too deeply").to_dict()
        except ValueError as exc:
            return Error(INVALID_REQUEST, f"Malformed JSON: {exc}").to_dict()
        except ValidationError as exc:
            return Error(INVALID_REQUEST, str(exc)).to_dict()
        return self.handle(call).to_dict()

    def _prepare(self, call: MethodCall) -> BondRequest | MethodResponse:
        if call.method != CREATE_BOND:
            LOGGER.debug("Method %r is not implemented on %s", call.method, CHANNEL)
            return NotImplementedResponse()
        try:
            return bond_request(call.arguments)
        except ValidationError as exc:
            return _invalid_argument(exc)

    def _respond(self, result: BondResult) -> MethodResponse:
        if isinstance(result, Failed) and self.surface_faults:
            return Error(BOND_FAILED, result.reason, {"address": result.address})
        return Success(isinstance(result, Bonded))


def parse_call(doc: Any) -> MethodCall:
    if not isinstance(doc, Mapping):
        raise ValidationError("Request must be a JSON object")
    method = doc.get("method")
    if not isinstance(method, str):
        raise ValidationError("Request is missing a string 'method'")
    arguments = doc.get("arguments")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise ValidationError("'arguments' must be a JSON object")
    return MethodCall(method=method, arguments=arguments)


def _invalid_argument(exc: ValidationError) -> Error:
    if isinstance(exc, MissingAddressError):
        return Error(INVALID_ARGUMENT, "Device address is null", None)
    return Error(INVALID_ARGUMENT, str(exc), None)
