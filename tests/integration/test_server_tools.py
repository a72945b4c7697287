"""Tests for the MCP server tools, called as plain functions."""

import json

import pytest

from ventwire.ingest.repository import set_device_config
from ventwire.server import (
    classify_frame,
    get_device_config,
    get_device_history,
    get_frame_layout_documentation,
    parse_frame,
)


class TestFrameTools:
    def test_parse_frame_detects_type(self, bipap_frame):
        result = parse_frame(frame=bipap_frame)

        assert result["device_type"] == "BIPAP"
        assert result["ventilation"]["ipap"] == 29.6
        assert result["section_e"][-1] == 500.0

    def test_parse_frame_explicit_type(self, cpap_frame):
        result = parse_frame(frame=cpap_frame, device_type="CPAP")

        assert result["device_type"] == "CPAP"
        assert result["flow"]["max_flow"] == 10.6

    def test_parse_frame_unknown_type(self, cpap_frame):
        with pytest.raises(ValueError, match="Unknown device type: VENT"):
            parse_frame(frame=cpap_frame, device_type="VENT")

    def test_classify_frame(self, cpap_manual_frame):
        assert classify_frame(frame=cpap_manual_frame) == "CPAP"
        assert classify_frame(frame="") == "CPAP"
        assert classify_frame(frame="*,VAPS_MODE,#") == "BIPAP"

    def test_layout_documentation(self):
        layout = json.loads(get_frame_layout_documentation())

        assert layout["CPAP"]["sections"] == ["S", "G", "H", "I"]
        assert layout["CPAP"]["layout"]["H"]["group"] == "flow"
        assert layout["BIPAP"]["layout"]["C"]["group"] == "section_c"


class TestStoredDataTools:
    def test_history_empty(self, initialized_db):
        page = get_device_history(device_id="dev-1")

        assert page["records"] == []
        assert page["pagination"]["has_more"] is False

    def test_device_config(self, initialized_db):
        set_device_config("dev-1", {"ipap": 12.0}, "BIPAP")

        config = get_device_config(device_id="dev-1")

        assert config["device_type"] == "BIPAP"
        assert config["pending_update"] is True

    def test_device_config_missing(self, initialized_db):
        with pytest.raises(ValueError, match="ghost"):
            get_device_config(device_id="ghost")
