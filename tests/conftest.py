"""
Shared fixtures built on the simulated RFXCOM driver.
"""

from typing import Any, Iterable, Mapping
from unittest.mock import AsyncMock, MagicMock

import pytest

from rfx_bridge.config import DeviceConfig, MQTTConfig, RfxcomConfig
from rfx_bridge.rfxcom.device_config import DeviceConfigResolver
from rfx_bridge.rfxcom.events import ProtocolEventRouter
from rfx_bridge.rfxcom.registry import CapabilityTable
from rfx_bridge.rfxcom.simulated import SimulatedDriver, SimulatedRfxCom


def make_devices(records: Iterable[Mapping[str, Any]]) -> list[DeviceConfig]:
    """Build device overrides from config-style dicts."""
    return [DeviceConfig.model_validate(record) for record in records]


def make_rfxcom_config(devices: Iterable[Mapping[str, Any]] = (), **kwargs: Any) -> RfxcomConfig:
    return RfxcomConfig(devices=make_devices(devices), **kwargs)


@pytest.fixture
def driver() -> SimulatedDriver:
    return SimulatedDriver()


@pytest.fixture
def transceiver(driver: SimulatedDriver) -> SimulatedRfxCom:
    """An initialised simulated transceiver."""
    rfxcom = driver.connect("/dev/ttyUSB0")
    rfxcom.connected = True
    return rfxcom


@pytest.fixture
def capabilities(driver: SimulatedDriver) -> CapabilityTable:
    return CapabilityTable.from_device_classes(driver.device_classes)


@pytest.fixture
def make_router(driver, transceiver, capabilities):
    def _make(devices: Iterable[Mapping[str, Any]] = ()) -> ProtocolEventRouter:
        resolver = DeviceConfigResolver(make_devices(devices), capabilities)
        return ProtocolEventRouter(driver, transceiver, resolver)

    return _make


async def _no_messages():
    return
    yield


@pytest.fixture
def mqtt_config() -> MQTTConfig:
    return MQTTConfig(base_topic="rfxcom2mqtt/", retain=True, qos=0)


@pytest.fixture
def backend() -> MagicMock:
    """MQTTBackend double recording every publish."""
    mock = MagicMock()
    mock.connect = AsyncMock()
    mock.disconnect = AsyncMock()
    mock.publish = AsyncMock()
    mock.subscribe = AsyncMock()
    mock.messages = MagicMock(side_effect=lambda: _no_messages())
    return mock


def published(backend: MagicMock) -> list[tuple[str, Any]]:
    """(topic, payload) pairs passed to backend.publish, in call order."""
    return [(call.args[0], call.args[1]) for call in backend.publish.await_args_list]
