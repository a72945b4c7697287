"""Tests for parse_device_data and the CPAP/BIPAP frame parsers."""

from collections import Counter

import pytest

from pydantic import ValidationError

from ventwire.constants import DeviceType
from ventwire.parsers import (
    BIPAPRecord,
    CPAPRecord,
    ParserError,
    UnknownDeviceType,
    parse_device_data,
)
from ventwire.parsers.bipap import BIPAPFrameParser
from ventwire.parsers.cpap import CPAPFrameParser


@pytest.mark.parser
class TestCPAPParsing:
    """Decoding CPAP frames."""

    def test_populated_frame(self, cpap_frame):
        record = parse_device_data(cpap_frame, "CPAP")

        assert isinstance(record, CPAPRecord)
        assert record.device_type == DeviceType.CPAP
        assert record.metadata.date == 141125
        assert record.metadata.time == 1447
        assert record.pressure.ipap == 12.2
        assert record.flow.max_flow == 10.6
        assert record.settings.mode == 1.0

    def test_accepts_enum_member(self, cpap_frame):
        by_enum = parse_device_data(cpap_frame, DeviceType.CPAP)
        by_str = parse_device_data(cpap_frame, "CPAP")
        assert by_enum == by_str

    def test_manual_mode_frame(self, cpap_manual_frame):
        record = parse_device_data(cpap_manual_frame, "CPAP")

        # Manual frames stamp the clock under R, not S
        assert record.metadata is None
        assert record.sections["R"] == [141125.0, 1703.0, "MANUALMODE"]
        assert record.pressure.ipap == 13.6
        assert record.settings.mode == 1.0
        # Serial number rides at the end of I, beyond the mapped positions
        assert record.sections["I"][7] == 12345678.0

    def test_truncated_metadata(self):
        record = parse_device_data("*,S,141125,#", "CPAP")

        assert record.metadata.date == 141125
        assert record.metadata.time is None

    def test_empty_frame(self):
        record = parse_device_data("", "CPAP")

        assert record.sections == {}
        assert record.metadata is None
        assert record.pressure is None
        assert record.flow is None
        assert record.settings is None

    def test_garbled_value_kept_as_string(self):
        record = parse_device_data("*,G,1?.2,1.0,#", "CPAP")
        assert record.pressure.ipap == "1?.2"
        assert record.pressure.ramp == 1.0


@pytest.mark.parser
class TestBIPAPParsing:
    """Decoding BIPAP frames."""

    def test_populated_frame(self, bipap_frame):
        record = parse_device_data(bipap_frame, "BIPAP")

        assert isinstance(record, BIPAPRecord)
        assert record.metadata.date == 141125
        assert record.pressure.ipap == 12.2
        assert record.pressure.ramp == 1.0
        assert record.ventilation.ipap == 29.6
        assert record.ventilation.epap == 10.8
        assert record.ventilation.mode == 1.0
        assert record.settings.humidity == 5.0
        assert record.settings.mode == 1.0

    def test_passthrough_sections(self, bipap_frame):
        record = parse_device_data(bipap_frame, "BIPAP")

        assert record.section_c == [16.0, 10.0, 10.0, 10.0, 10.0, 10.0, 0.0, 200.0, 1.0]
        assert record.section_d == [11.0, 10.0, 10.0, 10.0, 10.0, 10.0, 10.0, 200.0, 1.0]
        assert record.section_e == [
            20.0, 10.0, 5.0, 10.0, 20.0, 20.0, 1.0, 200.0, 1.0, 170.0, 500.0,
        ]
        assert record.section_c == record.sections["C"]

    def test_cpap_frame_as_bipap(self, cpap_frame):
        record = parse_device_data(cpap_frame, "BIPAP")

        assert record.metadata.date == 141125
        assert record.pressure is None
        assert record.ventilation is None
        assert set(record.sections) == {"S", "G", "H", "I"}


class TestDispatch:
    """Device type routing and the single error condition."""

    @pytest.mark.parametrize("device_type", ["FOO", "cpap", "Bipap", "", None, 1])
    def test_unknown_device_type(self, cpap_frame, device_type):
        with pytest.raises(UnknownDeviceType) as exc_info:
            parse_device_data(cpap_frame, device_type)

        assert exc_info.value.device_type == device_type
        assert "Unknown device type" in str(exc_info.value)

    def test_unknown_device_type_is_parser_error(self):
        with pytest.raises(ParserError):
            parse_device_data("anything", "FOO")

    def test_idempotent(self, bipap_frame):
        first = parse_device_data(bipap_frame, "BIPAP")
        second = parse_device_data(bipap_frame, "BIPAP")

        assert first == second
        assert first.to_document() == second.to_document()

    def test_records_are_frozen(self, cpap_frame):
        record = parse_device_data(cpap_frame, "CPAP")
        with pytest.raises(ValidationError):
            record.metadata = None

    def test_tokens_accounted_for(self, bipap_frame):
        record = parse_device_data(bipap_frame, "BIPAP")

        wire_tokens = [
            t for t in bipap_frame.split(",") if t not in ("*", "#") and len(t) != 1
        ]
        decoded = [value for values in record.sections.values() for value in values]

        assert Counter(decoded) == Counter(float(t) for t in wire_tokens)


class TestDocument:
    """The parsed_data document stored with each frame."""

    def test_cpap_document_shape(self, cpap_frame):
        document = parse_device_data(cpap_frame, "CPAP").to_document()

        assert set(document) == {"sections", "metadata", "pressure", "flow", "settings"}
        assert document["metadata"] == {"date": 141125.0, "time": 1447.0}
        assert document["flow"] == {
            "max_flow": 10.6,
            "min_flow": 10.6,
            "backup_rate": 20.0,
            "mode": 1.0,
        }

    def test_absent_groups_omitted_nulls_kept(self):
        document = parse_device_data("*,S,141125,#", "BIPAP").to_document()

        assert document == {
            "sections": {"S": [141125.0]},
            "metadata": {"date": 141125.0, "time": None},
        }

    def test_empty_frame_document(self):
        assert parse_device_data("", "CPAP").to_document() == {"sections": {}}


class TestParserClasses:
    def test_metadata(self):
        cpap = CPAPFrameParser()
        bipap = BIPAPFrameParser()

        assert cpap.parser_id == "cpap_frame"
        assert cpap.device_type == DeviceType.CPAP
        assert cpap.metadata.section_letters == ["S", "G", "H", "I"]
        assert bipap.device_type == DeviceType.BIPAP
        assert bipap.metadata.section_letters == ["S", "A", "B", "C", "D", "E", "F"]

    def test_repr(self):
        assert repr(CPAPFrameParser()) == "<CPAPFrameParser id=cpap_frame device_type=CPAP>"
