"""
Resolver for per-device configuration overrides.
"""

import logging
from typing import Optional, Sequence

from ..config import DeviceConfig
from .exceptions import DeviceConfigError
from .registry import CapabilityTable

logger = logging.getLogger("rfxbridge.rfxcom.device_config")


class DeviceConfigResolver:
    """Looks up static device overrides by friendly name or device id."""

    def __init__(self, devices: Sequence[DeviceConfig], capabilities: CapabilityTable):
        self._devices = list(devices)
        self._capabilities = capabilities

    @property
    def devices(self) -> list[DeviceConfig]:
        return list(self._devices)

    def find_by_name(self, entity_name: str) -> Optional[DeviceConfig]:
        """First override whose friendly name equals ``entity_name``."""
        for device in self._devices:
            if device.friendly_name == entity_name:
                return device
        return None

    def find_by_id(self, device_id: str) -> Optional[DeviceConfig]:
        """First override whose id equals ``device_id``."""
        for device in self._devices:
            if device.id == device_id:
                return device
        return None

    def resolve(self, entity_name: str) -> Optional[DeviceConfig]:
        """
        Find the override for a command addressed to ``entity_name``.

        Returns:
            The matching override, or None

        Raises:
            DeviceConfigError: if the override names an unknown device type
        """
        device = self.find_by_name(entity_name)
        if device is None:
            return None

        if device.type is not None and not self._capabilities.is_valid_device_type(device.type):
            raise DeviceConfigError(entity_name, f"{device.type} from config: not a valid device")

        logger.debug("Resolved config for %s: %s", entity_name, device)
        return device
