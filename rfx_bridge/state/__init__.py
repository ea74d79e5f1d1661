"""
Device state for the bridge session.

This module provides:
- Device, sensor and switch models
- Per-device stores with topic computation
- The session-wide registry of stores
"""

from .models import (
    BridgeInfo,
    DeviceBridge,
    DeviceEntity,
    DeviceSensor,
    DeviceState,
    DeviceSwitch,
    RfxcomInfo,
)
from .store import DeviceStateRegistry, DeviceStateStore, switch_id

__all__ = [
    # Models
    "DeviceEntity",
    "DeviceState",
    "DeviceSensor",
    "DeviceSwitch",
    "RfxcomInfo",
    "BridgeInfo",
    "DeviceBridge",
    # Stores
    "DeviceStateStore",
    "DeviceStateRegistry",
    "switch_id",
]
