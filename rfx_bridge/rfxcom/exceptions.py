"""
Custom exceptions for the RFXCOM command layer.

Soft rejections are logged and never raised; these types cover the
failures that must reach the caller.
"""


class RfxBridgeError(Exception):
    """Base exception for all bridge errors."""

    pass


class DeviceConfigError(RfxBridgeError):
    """Raised when a device override cannot be applied."""

    def __init__(self, device: str, reason: str):
        self.device = device
        self.reason = reason
        super().__init__(f"Invalid config for device '{device}': {reason}")


class SubtypeMissingError(RfxBridgeError):
    """Raised when neither payload nor config supply a subtype."""

    def __init__(self, entity_name: str):
        self.entity_name = entity_name
        super().__init__(f"subtype not defined in payload or config for '{entity_name}'")


class UnknownDeviceTypeError(RfxBridgeError):
    """Raised when a device handle is requested for an unknown type."""

    def __init__(self, device_type: str):
        self.device_type = device_type
        super().__init__(f"{device_type} is not a valid device")


class TransceiverConnectionError(RfxBridgeError):
    """Raised when the transceiver cannot be initialised."""

    def __init__(self, port: str, cause: object = None):
        self.port = port
        self.cause = cause
        message = f"Unable to initialise the RFXCOM device at {port}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
