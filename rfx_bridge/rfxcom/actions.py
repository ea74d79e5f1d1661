"""
Command dispatch for RFXCOM device classes.

Turns an abstract "set device state" request into repeated calls on a
freshly created device handle.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..utils import parse_int
from .device_config import DeviceConfigResolver
from .exceptions import DeviceConfigError, SubtypeMissingError
from .factory import create_device_handle
from .protocols import Transceiver
from .registry import CapabilityTable

logger = logging.getLogger("rfxbridge.rfxcom.actions")


class CommandPayload(BaseModel):
    """Abstract command as received from the messaging layer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    device_function: Optional[str] = Field(default=None, alias="deviceFunction")
    subtype: Optional[Union[int, str]] = None
    value: Any = None
    device_options: Optional[dict[str, Any]] = Field(default=None, alias="deviceOptions")


@dataclass(frozen=True)
class ResolvedCommand:
    """A command after config overrides have been applied."""
    device_type: str
    entity_name: str
    device_function: str
    subtype: Any
    value: Any = None
    options: Optional[dict[str, Any]] = None
    repetitions: int = 1


def _normalize_subtype(subtype: Any) -> Any:
    if subtype is None:
        return None
    parsed = parse_int(subtype)
    return parsed if parsed is not None else subtype


class CommandDispatcher:
    """
    Dispatches commands to device handles.

    Unknown device types and functions are dropped with a warning.
    Configuration errors and missing subtypes raise.
    """

    def __init__(
        self,
        capabilities: CapabilityTable,
        resolver: DeviceConfigResolver,
        transceiver: Transceiver,
    ):
        self.capabilities = capabilities
        self.resolver = resolver
        self.transceiver = transceiver

    def resolve(
        self,
        device_type: str,
        entity_name: str,
        payload: CommandPayload,
    ) -> ResolvedCommand:
        """
        Apply the override registered for ``entity_name`` to the request.

        Raises:
            DeviceConfigError: override type is unknown or lacks the function
            SubtypeMissingError: no subtype in payload or override
        """
        subtype = payload.subtype
        options = payload.device_options
        repetitions: Optional[int] = None

        device_conf = self.resolver.resolve(entity_name)
        if device_conf is not None:
            if device_conf.id is not None:
                entity_name = device_conf.id

            if device_conf.type is not None:
                device_type = device_conf.type
                if not self.capabilities.is_valid_device_function(
                    device_type, payload.device_function
                ):
                    raise DeviceConfigError(
                        entity_name,
                        f"{payload.device_function} is not a valid device function on {device_type}",
                    )

            if device_conf.subtype is not None:
                subtype = device_conf.subtype

            if device_conf.options is not None:
                options = device_conf.options

            repetitions = device_conf.repetitions

        if subtype is None:
            raise SubtypeMissingError(entity_name)

        return ResolvedCommand(
            device_type=device_type,
            entity_name=entity_name,
            device_function=payload.device_function,
            subtype=_normalize_subtype(subtype),
            value=payload.value,
            options=options,
            repetitions=repetitions or 1,
        )

    def dispatch(
        self,
        device_type: str,
        entity_name: str,
        payload: Union[CommandPayload, Mapping[str, Any]],
    ) -> Optional[ResolvedCommand]:
        """
        Execute a command on a device.

        Args:
            device_type: Device class name, e.g. "Lighting2"
            entity_name: Friendly name or device id
            payload: deviceFunction, and optionally subtype, value, deviceOptions

        Returns:
            The executed command, or None when the request was rejected
        """
        if not isinstance(payload, CommandPayload):
            payload = CommandPayload.model_validate(payload)

        if not self.capabilities.is_valid_device_type(device_type):
            logger.warning("%s is not a valid device", device_type)
            return None

        if not self.capabilities.is_valid_device_function(device_type, payload.device_function):
            logger.warning(
                "%s is not a valid device function on %s",
                payload.device_function,
                device_type,
            )
            return None

        command = self.resolve(device_type, entity_name, payload)

        device = create_device_handle(
            self.capabilities,
            self.transceiver,
            command.device_type,
            command.subtype,
            command.options,
        )
        function = getattr(device, command.device_function)

        for _ in range(command.repetitions):
            if command.value is not None:
                function(command.entity_name, command.value)
            else:
                function(command.entity_name)

            logger.debug(
                "%s %s[%s][%s]",
                command.device_type,
                command.entity_name,
                command.device_function,
                command.value,
            )

        return command
