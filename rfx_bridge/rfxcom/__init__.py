"""
RFXCOM command routing and event enrichment.

This module provides:
- Protocol definitions for the transceiver driver
- Capability table and device handle factory
- Device config resolution and command dispatch
- Protocol event routing
- The transceiver session tying them together
"""

from .actions import CommandDispatcher, CommandPayload, ResolvedCommand
from .device_config import DeviceConfigResolver
from .events import (
    SUBTYPE_NOT_FOUND,
    ProtocolEvent,
    ProtocolEventRouter,
    is_group_command,
    lookup_sub_type,
)
from .exceptions import (
    DeviceConfigError,
    RfxBridgeError,
    SubtypeMissingError,
    TransceiverConnectionError,
    UnknownDeviceTypeError,
)
from .factory import create_device_handle
from .protocols import RfxcomDriver, Transceiver
from .registry import CapabilityTable, DeviceCapability
from .transceiver import OFFLINE, ONLINE, RfxcomSession, load_driver

__all__ = [
    # Protocols
    "RfxcomDriver",
    "Transceiver",
    # Capabilities
    "CapabilityTable",
    "DeviceCapability",
    "create_device_handle",
    # Commands
    "DeviceConfigResolver",
    "CommandDispatcher",
    "CommandPayload",
    "ResolvedCommand",
    # Events
    "ProtocolEvent",
    "ProtocolEventRouter",
    "SUBTYPE_NOT_FOUND",
    "is_group_command",
    "lookup_sub_type",
    # Session
    "RfxcomSession",
    "load_driver",
    "ONLINE",
    "OFFLINE",
    # Errors
    "RfxBridgeError",
    "DeviceConfigError",
    "SubtypeMissingError",
    "UnknownDeviceTypeError",
    "TransceiverConnectionError",
]
