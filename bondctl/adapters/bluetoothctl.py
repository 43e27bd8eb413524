"""BlueZ adapter driven through the `bluetoothctl` command line tool."""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Sequence

from bondctl.adapters.base import normalize_address
from bondctl.core.errors import AdapterUnavailableError, BondInvocationError

LOGGER = logging.getLogger(__name__)

_CONTROLLER_LINE_RE = re.compile(r"^Controller\s+([0-9A-F:]{17})\s*(.*)$", re.IGNORECASE)
_PAIRED_RE = re.compile(r"^\s*Paired:\s*yes\s*$", re.IGNORECASE | re.MULTILINE)
_PAIR_OK_MARKERS = ("pairing successful",)
_PAIR_ALREADY_MARKERS = ("alreadyexists", "already paired")
_PAIR_FAILED_MARKERS = ("failed to pair", "authenticationrejected", "authenticationfailed", "authenticationcanceled")


def _run(cmd: Sequence[str], timeout_s: float) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        cmd,
        check=False,
        capture_output=True,
        text=True,
        timeout=timeout_s,
    )


def is_paired(address: str, timeout_s: float) -> bool:
    """Return True if BlueZ already holds a pairing for `address`."""
    result = _run(["bluetoothctl", "info", address], timeout_s)
    if result.returncode != 0:
        return False
    return bool(_PAIRED_RE.search(result.stdout or ""))


class BluetoothctlDevice:
    def __init__(self, address: str, *, timeout_s: float) -> None:
        self.address = address
        self.timeout_s = timeout_s

    def create_bond(self) -> bool:
        try:
            if is_paired(self.address, self.timeout_s):
                LOGGER.info("%s is already bonded", self.address)
                return False
            result = _run(["bluetoothctl", "pair", self.address], self.timeout_s)
        except FileNotFoundError as exc:
            raise BondInvocationError("bluetoothctl is not installed") from exc
        except subprocess.TimeoutExpired as exc:
            raise BondInvocationError(
                f"bluetoothctl pair {self.address} timed out after {self.timeout_s}s"
            ) from exc

        output = f"{result.stdout or ''}\n{result.stderr or ''}".lower()
        LOGGER.debug("bluetoothctl pair %s -> rc=%s %s", self.address, result.returncode, output.strip())
        if any(marker in output for marker in _PAIR_ALREADY_MARKERS):
            return False
        if any(marker in output for marker in _PAIR_FAILED_MARKERS):
            return False
        if any(marker in output for marker in _PAIR_OK_MARKERS):
            return True
        return result.returncode == 0

    def __repr__(self) -> str:
        return f"BluetoothctlDevice({self.address!r})"


class BluetoothctlAdapter:
    def __init__(self, controller: str, *, timeout_s: float = 10.0) -> None:
        self.controller = controller
        self.timeout_s = timeout_s

    @classmethod
    def default(cls, controller: str | None = None, *, timeout_s: float = 10.0) -> BluetoothctlAdapter:
        """Return the host's default controller, or the named one if given."""
        try:
            result = _run(["bluetoothctl", "list"], timeout_s)
        except FileNotFoundError as exc:
            raise AdapterUnavailableError("bluetoothctl is not installed") from exc
        except subprocess.TimeoutExpired as exc:
            raise AdapterUnavailableError("bluetoothctl list timed out") from exc

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise AdapterUnavailableError(
                f"bluetoothctl list failed. Ensure a working D-Bus/BlueZ session. Details: {stderr}"
            )

        controllers: list[tuple[str, str]] = []
        for line in (result.stdout or "").splitlines():
            match = _CONTROLLER_LINE_RE.match(line.strip())
            if match:
                controllers.append((match.group(1).upper(), match.group(2).strip()))

        if not controllers:
            raise AdapterUnavailableError("No Bluetooth controller found")

        if controller is None:
            default = next((c for c in controllers if "[default]" in c[1]), controllers[0])
            return cls(default[0], timeout_s=timeout_s)

        wanted = controller.strip().lower()
        for mac, label in controllers:
            if mac.lower() == wanted or label.lower().startswith(wanted):
                return cls(mac, timeout_s=timeout_s)
        raise AdapterUnavailableError(f"Bluetooth controller '{controller}' not found")

    def get_remote_device(self, address: str) -> BluetoothctlDevice:
        return BluetoothctlDevice(
            normalize_address(address),
            timeout_s=self.timeout_s,
        )

    def __repr__(self) -> str:
        return f"BluetoothctlAdapter({self.controller!r})"
