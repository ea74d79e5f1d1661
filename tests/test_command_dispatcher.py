"""
Tests for command dispatch: validation, override application, repetitions.
"""

import logging
from unittest.mock import patch

import pytest

from rfx_bridge.rfxcom.actions import CommandDispatcher, CommandPayload
from rfx_bridge.rfxcom.device_config import DeviceConfigResolver
from rfx_bridge.rfxcom.exceptions import DeviceConfigError, SubtypeMissingError
from rfx_bridge.rfxcom.factory import create_device_handle

from conftest import make_devices

# Every function of every simulated device class, with a value where required
ALL_FUNCTIONS = [
    ("Lighting1", "switchOn", None),
    ("Lighting1", "switchOff", None),
    ("Lighting1", "chime", None),
    ("Lighting2", "switchOn", None),
    ("Lighting2", "switchOff", None),
    ("Lighting2", "setLevel", 7),
    ("Lighting4", "sendData", None),
    ("Lighting6", "switchOn", None),
    ("Lighting6", "switchOff", None),
    ("Chime1", "chime", None),
]


@pytest.fixture
def make_dispatcher(capabilities, transceiver):
    def _make(devices=()):
        resolver = DeviceConfigResolver(make_devices(devices), capabilities)
        return CommandDispatcher(capabilities, resolver, transceiver)

    return _make


class TestDispatchKnownFunctions:
    """Known type and function with a subtype transmit exactly once."""

    def test_function_list_covers_capabilities(self, capabilities):
        expected = {(c.name, f) for c in capabilities for f in c.functions}
        assert {(t, f) for t, f, _ in ALL_FUNCTIONS} == expected

    @pytest.mark.parametrize("device_type,function,value", ALL_FUNCTIONS)
    def test_single_transmission(self, make_dispatcher, transceiver, device_type, function, value):
        dispatcher = make_dispatcher()
        command = dispatcher.dispatch(
            device_type,
            "0x01020304/1",
            {"deviceFunction": function, "subtype": 0, "value": value},
        )
        assert command is not None
        assert command.repetitions == 1
        assert len(transceiver.sent) == 1
        assert transceiver.sent[0]["entity"] == "0x01020304/1"

    def test_value_is_passed(self, make_dispatcher, transceiver):
        make_dispatcher().dispatch(
            "Lighting2", "0x01/1", {"deviceFunction": "setLevel", "subtype": 0, "value": 5}
        )
        assert transceiver.sent[0]["value"] == 5

    def test_zero_value_is_passed(self, make_dispatcher, transceiver):
        make_dispatcher().dispatch(
            "Lighting2", "0x01/1", {"deviceFunction": "setLevel", "subtype": 0, "value": 0}
        )
        assert transceiver.sent[0]["command"] == "Set level"
        assert transceiver.sent[0]["value"] == 0

    def test_text_subtype_is_normalized(self, make_dispatcher, transceiver):
        command = make_dispatcher().dispatch(
            "Lighting2", "0x01/1", {"deviceFunction": "switchOn", "subtype": "0x01"}
        )
        assert command.subtype == 1
        assert transceiver.sent[0]["subtype"] == 1

    def test_payload_model_is_accepted(self, make_dispatcher, transceiver):
        payload = CommandPayload(device_function="switchOff", subtype=0)
        make_dispatcher().dispatch("Lighting6", "0x1234/1", payload)
        assert transceiver.sent[0]["packetType"] == "lighting6"
        assert transceiver.sent[0]["command"] == "Off"

    def test_one_handle_per_dispatch(self, make_dispatcher):
        dispatcher = make_dispatcher([{"friendlyName": "lamp1", "id": "0x01", "subtype": 1, "repetitions": 3}])
        with patch(
            "rfx_bridge.rfxcom.actions.create_device_handle", wraps=create_device_handle
        ) as factory:
            dispatcher.dispatch("Lighting2", "lamp1", {"deviceFunction": "switchOn"})
        assert factory.call_count == 1


class TestSoftRejects:
    """Unknown types and functions are dropped with a warning."""

    def test_unknown_type(self, make_dispatcher, transceiver, caplog):
        with caplog.at_level(logging.WARNING):
            result = make_dispatcher().dispatch(
                "Lighting9", "0x01/1", {"deviceFunction": "switchOn", "subtype": 0}
            )
        assert result is None
        assert transceiver.sent == []
        assert "Lighting9 is not a valid device" in caplog.text

    def test_unknown_function(self, make_dispatcher, transceiver, caplog):
        with caplog.at_level(logging.WARNING):
            result = make_dispatcher().dispatch(
                "Lighting2", "0x01/1", {"deviceFunction": "explode", "subtype": 0}
            )
        assert result is None
        assert transceiver.sent == []
        assert "explode is not a valid device function on Lighting2" in caplog.text

    def test_missing_function(self, make_dispatcher, transceiver):
        assert make_dispatcher().dispatch("Lighting2", "0x01/1", {"subtype": 0}) is None
        assert transceiver.sent == []


class TestOverrides:
    """Device config overrides are applied before dispatch."""

    def test_lamp_override(self, make_dispatcher, transceiver):
        dispatcher = make_dispatcher(
            [{"friendlyName": "lamp1", "id": "0x01", "subtype": 1, "repetitions": 3}]
        )
        command = dispatcher.dispatch("Lighting2", "lamp1", {"deviceFunction": "switchOn"})

        assert command.entity_name == "0x01"
        assert command.subtype == 1
        assert command.repetitions == 3
        assert len(transceiver.sent) == 3
        assert all(record["entity"] == "0x01" for record in transceiver.sent)
        assert all(record["subtype"] == 1 for record in transceiver.sent)

    def test_override_subtype_wins(self, make_dispatcher, transceiver):
        dispatcher = make_dispatcher([{"friendlyName": "lamp1", "subtype": 3}])
        dispatcher.dispatch("Lighting2", "lamp1", {"deviceFunction": "switchOn", "subtype": 0})
        assert transceiver.sent[0]["subtype"] == 3

    def test_payload_subtype_used_without_override_subtype(self, make_dispatcher, transceiver):
        dispatcher = make_dispatcher([{"friendlyName": "lamp1", "id": "0x05"}])
        dispatcher.dispatch("Lighting2", "lamp1", {"deviceFunction": "switchOn", "subtype": 2})
        assert transceiver.sent[0]["subtype"] == 2
        assert transceiver.sent[0]["entity"] == "0x05"

    def test_override_type_substitution(self, make_dispatcher, transceiver):
        dispatcher = make_dispatcher([{"friendlyName": "porch", "type": "Lighting6", "subtype": 0}])
        command = dispatcher.dispatch("Lighting2", "porch", {"deviceFunction": "switchOn"})
        assert command.device_type == "Lighting6"
        assert transceiver.sent[0]["packetType"] == "lighting6"
        assert transceiver.sent[0]["entity"] == "porch"

    def test_override_with_unknown_type_raises(self, make_dispatcher, transceiver):
        dispatcher = make_dispatcher([{"friendlyName": "porch", "type": "Lighting9", "subtype": 0}])
        with pytest.raises(DeviceConfigError):
            dispatcher.dispatch("Lighting2", "porch", {"deviceFunction": "switchOn"})
        assert transceiver.sent == []

    def test_override_type_without_function_raises(self, make_dispatcher, transceiver):
        dispatcher = make_dispatcher([{"friendlyName": "bell", "type": "Chime1", "subtype": 0}])
        with pytest.raises(DeviceConfigError):
            dispatcher.dispatch("Lighting2", "bell", {"deviceFunction": "switchOn"})
        assert transceiver.sent == []

    def test_payload_options_kept_without_override_options(self, make_dispatcher):
        dispatcher = make_dispatcher([{"friendlyName": "lamp1", "subtype": 0}])
        command = dispatcher.resolve(
            "Lighting2",
            "lamp1",
            CommandPayload(device_function="switchOn", device_options={"a": 1}),
        )
        assert command.options == {"a": 1}

    def test_override_options_win(self, make_dispatcher):
        dispatcher = make_dispatcher([{"friendlyName": "lamp1", "subtype": 0, "options": {"b": 2}}])
        command = dispatcher.resolve(
            "Lighting2",
            "lamp1",
            CommandPayload(device_function="switchOn", device_options={"a": 1}),
        )
        assert command.options == {"b": 2}

    def test_repetitions_default_to_one(self, make_dispatcher):
        dispatcher = make_dispatcher([{"friendlyName": "lamp1", "subtype": 0}])
        command = dispatcher.resolve("Lighting2", "lamp1", CommandPayload(device_function="switchOn"))
        assert command.repetitions == 1

    def test_zero_repetitions_transmit_once(self, make_dispatcher, transceiver):
        dispatcher = make_dispatcher([{"friendlyName": "lamp1", "id": "0x01", "subtype": 0, "repetitions": 0}])
        command = dispatcher.dispatch("Lighting2", "lamp1", {"deviceFunction": "switchOn"})
        assert command.repetitions == 1
        assert len(transceiver.sent) == 1


class TestFatalErrors:
    """Failures that propagate to the caller."""

    def test_missing_subtype_raises(self, make_dispatcher, transceiver):
        with pytest.raises(SubtypeMissingError) as exc_info:
            make_dispatcher().dispatch("Lighting2", "0x01/1", {"deviceFunction": "switchOn"})
        assert exc_info.value.entity_name == "0x01/1"
        assert transceiver.sent == []

    def test_missing_subtype_reports_override_id(self, make_dispatcher):
        dispatcher = make_dispatcher([{"friendlyName": "lamp1", "id": "0x01"}])
        with pytest.raises(SubtypeMissingError) as exc_info:
            dispatcher.dispatch("Lighting2", "lamp1", {"deviceFunction": "switchOn"})
        assert exc_info.value.entity_name == "0x01"

    def test_driver_error_propagates(self, make_dispatcher, transceiver):
        transceiver.connected = False
        with pytest.raises(ConnectionError):
            make_dispatcher().dispatch(
                "Lighting2", "0x01/1", {"deviceFunction": "switchOn", "subtype": 0}
            )
