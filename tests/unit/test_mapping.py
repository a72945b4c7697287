"""Tests for the section mapper."""

from ventwire.parsers.mapping import map_bipap, map_cpap, project, value_at
from ventwire.parsers.types import Flow, Pressure


class TestValueAt:
    def test_in_range(self):
        assert value_at([1.0, 2.0], 1) == 2.0

    def test_out_of_range_is_none(self):
        assert value_at([1.0], 1) is None
        assert value_at([], 0) is None

    def test_negative_index_is_none(self):
        assert value_at([1.0, 2.0], -1) is None


class TestProject:
    def test_short_section_fills_none(self):
        flow = project([10.6, 10.6], Flow, ("max_flow", "min_flow", "backup_rate", "mode"))

        assert flow.max_flow == 10.6
        assert flow.min_flow == 10.6
        assert flow.backup_rate is None
        assert flow.mode is None

    def test_extra_tokens_ignored(self):
        pressure = project([12.2, 1.0, 99.0], Pressure, ("ipap", "ramp"))
        assert pressure.model_dump() == {"ipap": 12.2, "ramp": 1.0}


class TestMapCPAP:
    """CPAP S/G/H/I field tables."""

    def test_full_sections(self):
        record = map_cpap(
            {
                "S": [141125.0, 1447.0],
                "G": [12.2, 1.0],
                "H": [10.6, 10.6, 20.0, 1.0],
                "I": [5.0, 1.0, 1.0, 1.0, 0.0, 1.0, 1.0],
            }
        )

        assert record.metadata.date == 141125.0
        assert record.metadata.time == 1447.0
        assert record.pressure.ipap == 12.2
        assert record.pressure.ramp == 1.0
        assert record.flow.max_flow == 10.6
        assert record.flow.backup_rate == 20.0
        assert record.flow.mode == 1.0
        assert record.settings.humidity == 5.0
        assert record.settings.trigger == 0.0
        assert record.settings.mode == 1.0

    def test_zero_values_are_not_nulled(self):
        record = map_cpap({"G": [0.0, 0.0]})
        assert record.pressure.ipap == 0.0
        assert record.pressure.ramp == 0.0

    def test_absent_sections_leave_groups_unset(self):
        record = map_cpap({"G": [12.2, 1.0]})

        assert record.pressure is not None
        assert record.metadata is None
        assert record.flow is None
        assert record.settings is None

    def test_empty_sections(self):
        record = map_cpap({})
        assert record.sections == {}
        assert record.metadata is None

    def test_bipap_letters_not_mapped(self):
        record = map_cpap({"A": [12.2, 1.0]})
        assert record.pressure is None
        assert record.sections == {"A": [12.2, 1.0]}


class TestMapBIPAP:
    """BIPAP S/A/B/F tables and C/D/E passthrough."""

    def test_ventilation_fields(self):
        record = map_bipap(
            {"B": [29.6, 10.8, 10.6, 40.0, 10.0, 10.0, 13.0, 1.0]}
        )

        assert record.ventilation.ipap == 29.6
        assert record.ventilation.epap == 10.8
        assert record.ventilation.backup_rate == 10.6
        assert record.ventilation.tidal_volume == 40.0
        assert record.ventilation.insp_time == 10.0
        assert record.ventilation.rise_time == 10.0
        assert record.ventilation.trigger == 13.0
        assert record.ventilation.mode == 1.0

    def test_passthrough_sections_verbatim(self):
        record = map_bipap({"C": [16.0, "x", 0.0], "E": []})

        assert record.section_c == [16.0, "x", 0.0]
        assert record.section_d is None
        assert record.section_e == []

    def test_settings_from_f(self):
        record = map_bipap({"F": [5.0, 1.0, 1.0]})

        assert record.settings.humidity == 5.0
        assert record.settings.tube_type == 1.0
        assert record.settings.mask_type is None

    def test_cpap_letters_not_mapped(self):
        record = map_bipap({"G": [12.2], "I": [5.0]})
        assert record.pressure is None
        assert record.settings is None
