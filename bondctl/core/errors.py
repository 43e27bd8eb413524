"""Domain-specific errors for bondctl."""


class BondctlError(Exception):
    """Base error for bondctl."""


class ValidationError(BondctlError):
    """Raised when an inbound request does not have the expected shape."""


class MissingAddressError(ValidationError):
    """Raised when a bond request carries no device address."""


class ConfigError(BondctlError):
    """Raised when the config file cannot be read or fails validation."""


class AdapterFault(BondctlError):
    """Base error for failures talking to the host Bluetooth stack."""


class AdapterUnavailableError(AdapterFault):
    """Raised when no default Bluetooth adapter is present on the host."""


class DeviceResolutionError(AdapterFault):
    """Raised when an address cannot be resolved to a remote device."""


class BondInvocationError(AdapterFault):
    """Raised when the bonding primitive itself fails."""
