"""Parser type definitions."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ventwire.constants import DeviceType

# A decoded data token: a float when the wire text is a decimal literal,
# otherwise the original text.
Token = float | str

Sections = dict[str, list[Token]]


class ParserMetadata(BaseModel):
    """Metadata about a frame parser implementation."""

    parser_id: str = Field(description="Unique parser identifier")
    parser_version: str = Field(description="Parser version")
    device_type: DeviceType = Field(description="Device class this parser decodes")
    section_letters: list[str] = Field(
        description="Section markers the parser maps to named fields"
    )
    description: str = Field(description="Parser description")


class _Record(BaseModel):
    """Immutable projection over decoded sections."""

    model_config = ConfigDict(frozen=True)


class FrameMetadata(_Record):
    """Device clock stamp from section S."""

    date: Token | None = None
    time: Token | None = None


class Pressure(_Record):
    """Pressure settings (CPAP section G, BIPAP section A)."""

    ipap: Token | None = None
    ramp: Token | None = None


class Flow(_Record):
    """CPAP flow limits from section H."""

    max_flow: Token | None = None
    min_flow: Token | None = None
    backup_rate: Token | None = None
    mode: Token | None = None


class Ventilation(_Record):
    """BIPAP ventilation settings from section B."""

    ipap: Token | None = None
    epap: Token | None = None
    backup_rate: Token | None = None
    tidal_volume: Token | None = None
    insp_time: Token | None = None
    rise_time: Token | None = None
    trigger: Token | None = None
    mode: Token | None = None


class ComfortSettings(_Record):
    """Humidifier, circuit and trigger settings (CPAP I, BIPAP F)."""

    humidity: Token | None = None
    temperature: Token | None = None
    tube_type: Token | None = None
    mask_type: Token | None = None
    trigger: Token | None = None
    cycle: Token | None = None
    mode: Token | None = None


class ParsedRecord(_Record):
    """
    Result of decoding one frame.

    ``sections`` holds every section verbatim. Named groups are only set
    when their section letter was present in the frame.
    """

    device_type: DeviceType
    sections: Sections = Field(default_factory=dict)
    metadata: FrameMetadata | None = None
    pressure: Pressure | None = None
    settings: ComfortSettings | None = None

    def to_document(self) -> dict[str, Any]:
        """
        Render the record as the ``parsed_data`` document that gets stored.

        Groups that were never set are omitted; fields inside a present
        group are kept even when null.
        """
        return self.model_dump(mode="json", exclude_unset=True, exclude={"device_type"})


class CPAPRecord(ParsedRecord):
    """Decoded CPAP frame (sections S, G, H, I)."""

    device_type: DeviceType = DeviceType.CPAP
    flow: Flow | None = None


class BIPAPRecord(ParsedRecord):
    """Decoded BIPAP frame (sections S, A, B, C, D, E, F)."""

    device_type: DeviceType = DeviceType.BIPAP
    ventilation: Ventilation | None = None
    section_c: list[Token] | None = None
    section_d: list[Token] | None = None
    section_e: list[Token] | None = None
