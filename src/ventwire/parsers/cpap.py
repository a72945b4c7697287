"""CPAP frame parser (sections S, G, H, I)."""

from ventwire.constants import CPAP_SECTIONS, DeviceType
from ventwire.parsers.base import FrameParser
from ventwire.parsers.mapping import map_cpap
from ventwire.parsers.types import CPAPRecord, ParserMetadata, Sections


class CPAPFrameParser(FrameParser):
    """
    Parser for CPAP firmware frames.

    Example:
        *,S,141125,1447,G,12.2,1.0,H,10.6,10.6,20.0,1.0,I,5.0,1.0,1.0,1.0,0.0,1.0,1.0,#

    Manual-mode units also send a bare ``MANUALMODE`` token and a trailing
    serial number; both survive in ``sections``.
    """

    def get_metadata(self) -> ParserMetadata:
        return ParserMetadata(
            parser_id="cpap_frame",
            parser_version="1.0.0",
            device_type=DeviceType.CPAP,
            section_letters=list(CPAP_SECTIONS),
            description="CPAP telemetry frame parser",
        )

    def map_sections(self, sections: Sections) -> CPAPRecord:
        return map_cpap(sections)
