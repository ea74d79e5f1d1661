"""
Device handle factory.

This is the only place where a device type name is turned into a class.
"""

import logging
from typing import Any, Optional

from .exceptions import UnknownDeviceTypeError
from .protocols import Transceiver
from .registry import CapabilityTable

logger = logging.getLogger("rfxbridge.rfxcom.factory")


def create_device_handle(
    capabilities: CapabilityTable,
    transceiver: Transceiver,
    device_type: str,
    subtype: Any,
    options: Optional[dict[str, Any]] = None,
) -> Any:
    """
    Instantiate ``device_type`` bound to ``transceiver``.

    Args:
        capabilities: Table built from the driver exports
        transceiver: Connection the handle transmits through
        device_type: Device class name, e.g. "Lighting2"
        subtype: Numeric subtype code
        options: Optional class options, omitted from the call when empty

    Raises:
        UnknownDeviceTypeError: if ``device_type`` is not in the table
    """
    capability = capabilities.get(device_type)
    if capability is None:
        raise UnknownDeviceTypeError(device_type)

    if options:
        handle = capability.device_class(transceiver, subtype, options)
    else:
        handle = capability.device_class(transceiver, subtype)
    logger.debug("Created %s handle (subtype=%s, options=%s)", device_type, subtype, options)
    return handle
