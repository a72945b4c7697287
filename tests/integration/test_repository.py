"""Tests for stored data queries and device configuration management."""

from datetime import UTC, datetime, timedelta

import pytest

from ventwire.database import models
from ventwire.database.session import session_scope
from ventwire.ingest.errors import ConfigNotFound, InvalidPayload
from ventwire.ingest.repository import (
    get_device_config,
    get_device_history,
    mark_config_delivered,
    set_device_config,
)


@pytest.fixture
def stored_frames(initialized_db):
    """Five frames for dev-1 (alternating source) and one for dev-2."""
    base = datetime(2025, 11, 14, 14, 47, tzinfo=UTC)
    with session_scope() as db:
        for i in range(5):
            db.add(
                models.DeviceData(
                    device_type="CPAP",
                    device_id="dev-1",
                    device_status=1,
                    raw_data=f"*,S,141125,{1447 + i},#",
                    parsed_data={"sections": {"S": [141125.0, 1447.0 + i]}},
                    data_source="cloud" if i % 2 == 0 else "software",
                    timestamp=base + timedelta(minutes=i),
                )
            )
        db.add(
            models.DeviceData(
                device_type="BIPAP",
                device_id="dev-2",
                device_status=0,
                raw_data="*,S,1,#",
                parsed_data={"sections": {"S": [1.0]}},
                data_source="direct",
                timestamp=base,
            )
        )


class TestDeviceHistory:
    def test_newest_first_without_raw(self, stored_frames):
        page = get_device_history("dev-1")

        records = page["records"]
        assert len(records) == 5
        assert "raw_data" not in records[0]
        times = [r["parsed_data"]["sections"]["S"][1] for r in records]
        assert times == [1451.0, 1450.0, 1449.0, 1448.0, 1447.0]
        assert page["pagination"] == {
            "total": 5,
            "limit": 100,
            "offset": 0,
            "has_more": False,
        }

    def test_pagination(self, stored_frames):
        page = get_device_history("dev-1", limit=2, offset=1)

        assert len(page["records"]) == 2
        assert page["records"][0]["parsed_data"]["sections"]["S"][1] == 1450.0
        assert page["pagination"]["has_more"] is True

    def test_source_filter(self, stored_frames):
        page = get_device_history("dev-1", data_source="software")

        assert page["pagination"]["total"] == 2
        assert {r["data_source"] for r in page["records"]} == {"software"}

    def test_unknown_source_filter_ignored(self, stored_frames):
        page = get_device_history("dev-1", data_source="satellite")
        assert page["pagination"]["total"] == 5

    def test_unknown_device(self, stored_frames):
        page = get_device_history("nope")
        assert page["records"] == []
        assert page["pagination"]["total"] == 0


class TestDeviceConfig:
    def test_create_defaults_to_cpap_and_pending(self, initialized_db):
        config = set_device_config("dev-1", {"ipap": 12.0})

        assert config["device_type"] == "CPAP"
        assert config["pending_update"] is True
        assert config["config_values"] == {"ipap": 12.0}
        assert config["last_updated"] is not None

    def test_update_keeps_type_and_marks_pending(self, initialized_db):
        set_device_config("dev-1", {"ipap": 12.0}, "BIPAP")
        mark_config_delivered("dev-1")

        config = set_device_config("dev-1", {"ipap": 13.0})

        assert config["device_type"] == "BIPAP"
        assert config["pending_update"] is True
        assert get_device_config("dev-1")["config_values"] == {"ipap": 13.0}

    def test_mark_delivered(self, initialized_db):
        set_device_config("dev-1", {"ipap": 12.0})

        result = mark_config_delivered("dev-1")

        assert result == {"device_id": "dev-1", "pending_update": False}
        assert get_device_config("dev-1")["pending_update"] is False

    def test_missing_config(self, initialized_db):
        with pytest.raises(ConfigNotFound):
            get_device_config("ghost")
        with pytest.raises(ConfigNotFound):
            mark_config_delivered("ghost")

    def test_invalid_inputs(self, initialized_db):
        with pytest.raises(InvalidPayload, match="config_values is required"):
            set_device_config("dev-1", None)
        with pytest.raises(InvalidPayload, match="CPAP or BIPAP"):
            set_device_config("dev-1", {}, "VENT")

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), object()])
    def test_non_json_values_rejected(self, initialized_db, bad):
        with pytest.raises(InvalidPayload, match="strict JSON"):
            set_device_config("dev-1", {"ipap": bad})

        with pytest.raises(ConfigNotFound):
            get_device_config("dev-1")
