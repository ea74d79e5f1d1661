"""
Capability table for the device classes exported by the driver.

Built once at startup; afterwards every lookup is a pure dictionary query.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Optional

logger = logging.getLogger("rfxbridge.rfxcom.registry")


@dataclass(frozen=True)
class DeviceCapability:
    """A device class and the functions its instances expose."""
    name: str
    device_class: type
    functions: frozenset[str]

    def supports(self, function_name: str) -> bool:
        return function_name in self.functions


def _instance_functions(device_class: type) -> frozenset[str]:
    """Public instance-level functions of ``device_class``, inherited ones included."""
    return frozenset(
        name
        for name, _ in inspect.getmembers(device_class, inspect.isfunction)
        if not name.startswith("_")
    )


class CapabilityTable:
    """
    Static map of device type -> supported functions.

    Supports:
    - Construction from the driver's exported names
    - Device type validation
    - Device function validation
    """

    def __init__(self, capabilities: Iterable[DeviceCapability] = ()):
        self._capabilities: dict[str, DeviceCapability] = {
            capability.name: capability for capability in capabilities
        }

    @classmethod
    def from_device_classes(cls, exports: Mapping[str, Any]) -> "CapabilityTable":
        """Introspect the driver exports; anything that is not a class is skipped."""
        capabilities = []
        for name, device_class in exports.items():
            if not inspect.isclass(device_class):
                continue
            capabilities.append(
                DeviceCapability(
                    name=name,
                    device_class=device_class,
                    functions=_instance_functions(device_class),
                )
            )
        table = cls(capabilities)
        logger.info("Loaded %d device types: %s", len(table), ", ".join(table.names()))
        return table

    def is_valid_device_type(self, name: str) -> bool:
        """True iff ``name`` is an exported device class."""
        return name in self._capabilities

    def is_valid_device_function(self, device_type: str, function_name: str) -> bool:
        """True iff ``device_type`` is known and exposes ``function_name``."""
        capability = self._capabilities.get(device_type)
        if capability is None:
            return False
        return capability.supports(function_name)

    def get(self, device_type: str) -> Optional[DeviceCapability]:
        return self._capabilities.get(device_type)

    def names(self) -> list[str]:
        """Return all known device type names."""
        return sorted(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)

    def __iter__(self) -> Iterator[DeviceCapability]:
        return iter(self._capabilities.values())
