"""Tests for device snapshots and classification."""

import itertools

import pytest

from bluemgr.dbuslayer.device import DeviceRecord, classify


class TestClassify:
    """Tests for service-identifier classification."""

    def test_audio_marker(self):
        assert classify({"1108"}) == "Audio Device"

    def test_empty_set_is_unknown(self):
        assert classify(set()) == "Unknown Device"

    def test_full_uuid_matches_short_id(self):
        assert classify({"00001124-0000-1000-8000-00805f9b34fb"}) == "Input Device"

    def test_case_insensitive(self):
        assert classify({"0000110B-0000-1000-8000-00805F9B34FB"}) == "Audio Device"

    @pytest.mark.parametrize(
        "ids, category",
        [
            ({"1115"}, "Network Device"),
            ({"1116"}, "Network Device"),
            ({"1105"}, "File Transfer"),
            ({"1106"}, "File Transfer"),
            ({"180f", "1800"}, "Unknown Device"),
        ],
    )
    def test_groups(self, ids, category):
        assert classify(ids) == category

    def test_earlier_group_wins(self):
        # input beats network and file transfer; audio beats everything
        assert classify({"1116", "1124", "1105"}) == "Input Device"
        assert classify({"1105", "1124", "110d"}) == "Audio Device"

    def test_order_independent(self):
        ids = ["1106", "1115", "1124", "1108"]
        results = {classify(perm) for perm in itertools.permutations(ids)}
        assert results == {"Audio Device"}


class TestDeviceRecord:
    """Tests for the DeviceRecord snapshot."""

    def test_defaults(self):
        record = DeviceRecord(address="AA:BB:CC:DD:EE:FF")
        assert record.display_name == "Unknown Device"
        assert record.category == "Unknown Device"
        assert record.signal_strength is None
        assert record.service_ids == frozenset()
        assert not (record.connected or record.paired or record.trusted)

    def test_empty_name_falls_back(self):
        record = DeviceRecord(address="AA:BB:CC:DD:EE:FF", display_name="")
        assert record.display_name == "Unknown Device"

    def test_category_follows_service_ids(self):
        record = DeviceRecord(address="AA:BB:CC:DD:EE:FF", service_ids={"1105"})
        assert record.category == "File Transfer"
        updated = record.with_service_ids({"1108"})
        assert updated.category == "Audio Device"
        assert record.category == "File Transfer"

    def test_is_immutable(self):
        record = DeviceRecord(address="AA:BB:CC:DD:EE:FF")
        with pytest.raises(AttributeError):
            record.connected = True

    def test_from_properties(self):
        record = DeviceRecord.from_properties(
            "AA:BB:CC:DD:EE:FF",
            {
                "Name": "Keyboard",
                "Connected": True,
                "Paired": True,
                "Trusted": False,
                "RSSI": -61,
                "UUIDs": ["00001124-0000-1000-8000-00805f9b34fb"],
            },
        )
        assert record.display_name == "Keyboard"
        assert record.connected and record.paired and not record.trusted
        assert record.signal_strength == -61
        assert record.category == "Input Device"

    def test_from_properties_ignores_address_alias(self):
        record = DeviceRecord.from_properties("AA:BB:CC:DD:EE:FF", {"Alias": "AA-BB-CC-DD-EE-FF"})
        assert record.display_name == "Unknown Device"

    def test_from_properties_uses_alias_without_name(self):
        record = DeviceRecord.from_properties("AA:BB:CC:DD:EE:FF", {"Alias": "Kitchen speaker"})
        assert record.display_name == "Kitchen speaker"

    def test_to_dict(self):
        record = DeviceRecord(
            address="AA:BB:CC:DD:EE:FF",
            display_name="Speaker",
            connected=True,
            signal_strength=-40,
            service_ids={"110b", "1108"},
        )
        assert record.to_dict() == {
            "address": "AA:BB:CC:DD:EE:FF",
            "name": "Speaker",
            "category": "Audio Device",
            "connected": True,
            "paired": False,
            "trusted": False,
            "rssi": -40,
            "uuids": ["1108", "110b"],
        }
