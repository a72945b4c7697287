"""BIPAP frame parser (sections S, A, B, C, D, E, F)."""

from ventwire.constants import BIPAP_SECTIONS, DeviceType
from ventwire.parsers.base import FrameParser
from ventwire.parsers.mapping import map_bipap
from ventwire.parsers.types import BIPAPRecord, ParserMetadata, Sections


class BIPAPFrameParser(FrameParser):
    """
    Parser for BIPAP firmware frames.

    Sections C, D and E carry mode-specific parameter blocks whose
    positions have no assigned names; they are exposed whole as
    ``section_c``/``section_d``/``section_e``.
    """

    def get_metadata(self) -> ParserMetadata:
        return ParserMetadata(
            parser_id="bipap_frame",
            parser_version="1.0.0",
            device_type=DeviceType.BIPAP,
            section_letters=list(BIPAP_SECTIONS),
            description="BIPAP telemetry frame parser",
        )

    def map_sections(self, sections: Sections) -> BIPAPRecord:
        return map_bipap(sections)
