"""
Tests for the capability table and the device handle factory.
"""

import logging

import pytest

from rfx_bridge.rfxcom.exceptions import UnknownDeviceTypeError
from rfx_bridge.rfxcom.factory import create_device_handle
from rfx_bridge.rfxcom.registry import CapabilityTable


class _Recorder:
    """Device class that keeps its constructor arguments."""

    def __init__(self, *args):
        self.args = args

    def switchOn(self, entity):
        return entity

    def _private(self):
        pass


class _Dimmer(_Recorder):
    def setLevel(self, entity, level):
        return entity, level


class TestCapabilityTable:
    """Construction and lookups."""

    def test_non_class_exports_are_skipped(self, capabilities):
        assert not capabilities.is_valid_device_type("transmitterPacketTypes")
        assert not capabilities.is_valid_device_type("deviceNames")

    def test_exported_classes_are_device_types(self, capabilities):
        assert capabilities.names() == ["Chime1", "Lighting1", "Lighting2", "Lighting4", "Lighting6"]
        assert len(capabilities) == 5

    def test_unknown_type_is_invalid(self, capabilities):
        assert not capabilities.is_valid_device_type("Lighting9")
        assert not capabilities.is_valid_device_type("lighting2")

    def test_valid_function(self, capabilities):
        assert capabilities.is_valid_device_function("Lighting2", "switchOn")
        assert capabilities.is_valid_device_function("Lighting2", "setLevel")

    def test_function_of_other_type_is_invalid(self, capabilities):
        assert not capabilities.is_valid_device_function("Lighting2", "chime")

    def test_function_on_unknown_type_is_invalid(self, capabilities):
        assert not capabilities.is_valid_device_function("Lighting9", "switchOn")

    def test_private_and_dunder_functions_are_excluded(self, capabilities):
        assert not capabilities.is_valid_device_function("Lighting2", "_send")
        assert not capabilities.is_valid_device_function("Lighting2", "__init__")

    def test_none_function_is_invalid(self, capabilities):
        assert not capabilities.is_valid_device_function("Lighting2", None)

    def test_inherited_functions_are_included(self):
        table = CapabilityTable.from_device_classes({"Dimmer": _Dimmer})
        assert table.is_valid_device_function("Dimmer", "switchOn")
        assert table.is_valid_device_function("Dimmer", "setLevel")

    def test_get_returns_capability(self, capabilities):
        capability = capabilities.get("Chime1")
        assert capability is not None
        assert capability.supports("chime")
        assert capabilities.get("Chime9") is None

    def test_iteration_yields_capabilities(self, capabilities):
        assert sorted(c.name for c in capabilities) == capabilities.names()

    def test_load_is_logged(self, driver, caplog):
        with caplog.at_level(logging.INFO, logger="rfxbridge.rfxcom.registry"):
            CapabilityTable.from_device_classes(driver.device_classes)
        assert "Loaded 5 device types" in caplog.text


class TestCreateDeviceHandle:
    """The factory is the only place device classes are instantiated."""

    @pytest.fixture
    def table(self):
        return CapabilityTable.from_device_classes({"Recorder": _Recorder})

    def test_without_options(self, table, transceiver):
        handle = create_device_handle(table, transceiver, "Recorder", 1)
        assert handle.args == (transceiver, 1)

    def test_empty_options_are_omitted(self, table, transceiver):
        handle = create_device_handle(table, transceiver, "Recorder", 1, {})
        assert handle.args == (transceiver, 1)

    def test_with_options(self, table, transceiver):
        handle = create_device_handle(table, transceiver, "Recorder", 2, {"houseCode": "A"})
        assert handle.args == (transceiver, 2, {"houseCode": "A"})

    def test_unknown_type_raises(self, table, transceiver):
        with pytest.raises(UnknownDeviceTypeError) as exc_info:
            create_device_handle(table, transceiver, "Lighting2", 0)
        assert exc_info.value.device_type == "Lighting2"

    def test_simulated_handle_transmits(self, capabilities, transceiver):
        handle = create_device_handle(capabilities, transceiver, "Lighting2", 0)
        handle.switchOn("0x01020304/1")
        assert transceiver.sent == [
            {
                "packetType": "lighting2",
                "subtype": 0,
                "entity": "0x01020304/1",
                "command": "On",
                "value": None,
            }
        ]
