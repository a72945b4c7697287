"""
Section mapper.

Each device type assigns names to positions within its sections. The tables
below are the whole mapping; ``project`` turns one section into a named
group, filling positions the frame did not carry with None.
"""

from typing import TypeVar

from pydantic import BaseModel

from ventwire.parsers.types import (
    BIPAPRecord,
    ComfortSettings,
    CPAPRecord,
    Flow,
    FrameMetadata,
    Pressure,
    Sections,
    Token,
    Ventilation,
)

GroupT = TypeVar("GroupT", bound=BaseModel)

METADATA_FIELDS = ("date", "time")
PRESSURE_FIELDS = ("ipap", "ramp")
FLOW_FIELDS = ("max_flow", "min_flow", "backup_rate", "mode")
VENTILATION_FIELDS = (
    "ipap",
    "epap",
    "backup_rate",
    "tidal_volume",
    "insp_time",
    "rise_time",
    "trigger",
    "mode",
)
SETTINGS_FIELDS = (
    "humidity",
    "temperature",
    "tube_type",
    "mask_type",
    "trigger",
    "cycle",
    "mode",
)

# record attribute -> (section letter, group model, positional field names)
CPAP_LAYOUT: dict[str, tuple[str, type[BaseModel], tuple[str, ...]]] = {
    "metadata": ("S", FrameMetadata, METADATA_FIELDS),
    "pressure": ("G", Pressure, PRESSURE_FIELDS),
    "flow": ("H", Flow, FLOW_FIELDS),
    "settings": ("I", ComfortSettings, SETTINGS_FIELDS),
}

BIPAP_LAYOUT: dict[str, tuple[str, type[BaseModel], tuple[str, ...]]] = {
    "metadata": ("S", FrameMetadata, METADATA_FIELDS),
    "pressure": ("A", Pressure, PRESSURE_FIELDS),
    "ventilation": ("B", Ventilation, VENTILATION_FIELDS),
    "settings": ("F", ComfortSettings, SETTINGS_FIELDS),
}

# record attribute -> section letter exposed as a plain list
BIPAP_PASSTHROUGH = {
    "section_c": "C",
    "section_d": "D",
    "section_e": "E",
}


def value_at(values: list[Token], index: int) -> Token | None:
    """Token at ``index``, or None when the section is too short."""
    if 0 <= index < len(values):
        return values[index]
    return None


def project(
    values: list[Token], model: type[GroupT], fields: tuple[str, ...]
) -> GroupT:
    """Build a named group from a section's positional tokens."""
    return model(**{name: value_at(values, i) for i, name in enumerate(fields)})


def _map_layout(
    sections: Sections,
    layout: dict[str, tuple[str, type[BaseModel], tuple[str, ...]]],
) -> dict[str, BaseModel]:
    groups: dict[str, BaseModel] = {}
    for attr, (letter, model, fields) in layout.items():
        if letter in sections:
            groups[attr] = project(sections[letter], model, fields)
    return groups


def map_cpap(sections: Sections) -> CPAPRecord:
    """Map CPAP sections S/G/H/I to a CPAPRecord."""
    return CPAPRecord(sections=sections, **_map_layout(sections, CPAP_LAYOUT))


def map_bipap(sections: Sections) -> BIPAPRecord:
    """Map BIPAP sections S/A/B/F to named groups and C/D/E verbatim."""
    extra: dict[str, list[Token]] = {
        attr: list(sections[letter])
        for attr, letter in BIPAP_PASSTHROUGH.items()
        if letter in sections
    }
    return BIPAPRecord(
        sections=sections, **_map_layout(sections, BIPAP_LAYOUT), **extra
    )
