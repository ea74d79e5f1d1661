"""
RFXCOM transceiver session.

Owns the driver connection and the command/event components built on it
for the lifetime of one bridge session.
"""

import asyncio
import importlib
import logging
from typing import Any, Callable, Mapping, Optional

from ..config import DeviceConfig, RfxcomConfig
from ..state.models import RfxcomInfo
from .actions import CommandDispatcher, CommandPayload, ResolvedCommand
from .device_config import DeviceConfigResolver
from .events import EventCallback, ProtocolEventRouter
from .exceptions import TransceiverConnectionError
from .protocols import RfxcomDriver, Transceiver
from .registry import CapabilityTable

logger = logging.getLogger("rfxbridge.rfxcom.transceiver")

ONLINE = "online"
OFFLINE = "offline"

# Status event fields that describe the packet, not the transceiver
STATUS_TRANSPORT_FIELDS = ("subtype", "seqnbr", "cmnd")


def load_driver(path: str) -> RfxcomDriver:
    """
    Import a driver factory given as "module:attribute" and call it.

    A non-callable attribute is returned as the driver itself.
    """
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Driver must be given as 'module:attribute', got {path!r}")
    module = importlib.import_module(module_name)
    target = getattr(module, attribute)
    driver = target() if callable(target) else target
    logger.info("Loaded RFXCOM driver from %s", path)
    return driver


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


class RfxcomSession:
    """
    One connection to the transceiver plus the components using it.

    Holds:
    - the capability table built from the driver exports
    - the device config resolver
    - the command dispatcher
    - the protocol event router
    """

    def __init__(self, config: RfxcomConfig, driver: RfxcomDriver):
        self.config = config
        self.driver = driver
        self.transceiver: Transceiver = driver.connect(config.usbport, debug=config.debug)
        self.capabilities = CapabilityTable.from_device_classes(driver.device_classes)
        self.resolver = DeviceConfigResolver(config.devices, self.capabilities)
        self.dispatcher = CommandDispatcher(self.capabilities, self.resolver, self.transceiver)
        self.router = ProtocolEventRouter(driver, self.transceiver, self.resolver)

    @property
    def devices(self) -> list[DeviceConfig]:
        return self.resolver.devices

    async def initialise(self) -> None:
        """
        Open the transceiver.

        Raises:
            TransceiverConnectionError: if the driver reports a failure
        """
        logger.info("Connecting to RFXCOM at %s", self.config.usbport)
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def _set_result(error: Optional[Any]) -> None:
            if future.done():
                return
            if error:
                future.set_exception(TransceiverConnectionError(self.config.usbport, error))
            else:
                future.set_result(None)

        def _callback(error: Optional[Any] = None) -> None:
            loop.call_soon_threadsafe(_set_result, error)

        self.transceiver.initialise(_callback)
        try:
            await future
        except TransceiverConnectionError:
            logger.error("Unable to initialise the RFXCOM device")
            raise
        logger.info("RFXCOM device initialised")

    def enable_protocols(self) -> None:
        """Enable receiving for the configured protocols."""
        receive = list(self.config.receive)

        def _callback(*_: Any) -> None:
            logger.info("RFXCOM enableRFXProtocols : %s", receive)

        self.transceiver.enable_rfx_protocols(receive, _callback)

    async def get_status(self) -> str:
        """Health check: "online" or "offline"."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def _set_result(status: str) -> None:
            if not future.done():
                future.set_result(status)

        def _callback(error: Optional[Any] = None) -> None:
            if error:
                logger.error("Healthcheck: RFX Status ERROR")
                status = OFFLINE
            else:
                status = ONLINE
            loop.call_soon_threadsafe(_set_result, status)

        self.transceiver.get_rfx_status(_callback)
        return await future

    def on_status(self, callback: Callable[[RfxcomInfo], None]) -> None:
        """Forward transceiver status events as RfxcomInfo."""
        logger.info("RFXCOM listen status event")

        def _handler(evt: Mapping[str, Any]) -> None:
            report = {k: v for k, v in evt.items() if k not in STATUS_TRANSPORT_FIELDS}
            logger.info("RFXCOM listen status : %s", report)
            callback(RfxcomInfo.from_status_event(report))

        self.transceiver.on("status", _handler)

    def on_disconnect(self, callback: Callable[[Any], None]) -> None:
        logger.info("RFXCOM listen disconnect event")

        def _handler(evt: Any = None) -> None:
            callback(evt)
            logger.info("RFXCOM Disconnected")

        self.transceiver.on("disconnect", _handler)

    def subscribe_protocol_events(self, callback: EventCallback) -> None:
        """Route the configured receive protocols to ``callback``."""
        if not self.config.receive:
            return
        self.router.start(self.config.receive, callback)

    def on_command(
        self,
        device_type: str,
        entity_name: str,
        payload: Any,
    ) -> Optional[ResolvedCommand]:
        return self.dispatcher.dispatch(device_type, entity_name, payload)

    def send_command(
        self,
        device_type: str,
        sub_type_value: str,
        command: Optional[str],
        entity_name: str,
    ) -> Optional[ResolvedCommand]:
        """
        Send ``command`` to a device known by protocol and subtype name.

        Args:
            device_type: Protocol name, e.g. "lighting2"
            sub_type_value: Subtype constant name, e.g. "AC"
            command: Device function; None sends nothing
            entity_name: Device address, e.g. "0x01020304/1"
        """
        if command is None:
            return None

        logger.debug("send rfxcom command : %s for device :%s.%s", command, device_type, entity_name)
        subtype = self.driver.packet_subtypes.get(device_type, {}).get(sub_type_value)
        payload = CommandPayload(device_function=command, subtype=subtype)
        return self.dispatcher.dispatch(_capitalize(device_type), entity_name, payload)

    def stop(self) -> None:
        logger.info("Disconnecting from RFXCOM")
        self.transceiver.close()
