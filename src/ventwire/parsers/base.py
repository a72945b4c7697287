"""
Abstract Frame Parser Interface

Every device type's frame parser inherits from FrameParser. Parsers share
the tokenizer and differ only in how they name section positions, so a
subclass supplies its metadata and a mapping step; ``parse`` does the rest.
"""

import logging

from abc import ABC, abstractmethod

from ventwire.constants import DeviceType
from ventwire.parsers.frame import split_sections
from ventwire.parsers.types import ParsedRecord, ParserMetadata, Sections

logger = logging.getLogger(__name__)


class FrameParser(ABC):
    """
    Abstract base class for telemetry frame parsers.

    Usage Example:
        class CPAPFrameParser(FrameParser):
            def get_metadata(self):
                return ParserMetadata(parser_id="cpap_frame", ...)

            def map_sections(self, sections):
                return map_cpap(sections)

    Parsers hold no per-call state; one instance can serve any number of
    concurrent callers.
    """

    def __init__(self) -> None:
        """Initialize the parser."""
        self._metadata = self.get_metadata()

    @abstractmethod
    def get_metadata(self) -> ParserMetadata:
        """
        Return metadata about this parser.

        Returns:
            ParserMetadata with parser information
        """
        pass

    @abstractmethod
    def map_sections(self, sections: Sections) -> ParsedRecord:
        """
        Project split sections onto this device type's named fields.

        Must be total: absent sections and short sections produce None
        fields, never an exception.
        """
        pass

    def parse(self, frame: str) -> ParsedRecord:
        """
        Decode one raw frame.

        Args:
            frame: Raw telemetry string

        Returns:
            A fresh ParsedRecord for this frame
        """
        sections = split_sections(frame)
        missing = [
            letter
            for letter in self._metadata.section_letters
            if letter not in sections
        ]
        if missing:
            logger.debug(
                f"{self.parser_id}: frame lacks section(s) {', '.join(missing)}"
            )
        return self.map_sections(sections)

    @property
    def metadata(self) -> ParserMetadata:
        """Get parser metadata."""
        return self._metadata

    @property
    def parser_id(self) -> str:
        """Get unique parser identifier."""
        return self._metadata.parser_id

    @property
    def device_type(self) -> DeviceType:
        """Get the device type this parser decodes."""
        return self._metadata.device_type

    def __str__(self) -> str:
        return f"{self.parser_id} (v{self._metadata.parser_version}): {self._metadata.description}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.parser_id} device_type={self.device_type.value}>"


class ParserError(Exception):
    """Base exception for parser errors."""

    def __init__(self, message: str, parser: FrameParser | None = None):
        super().__init__(message)
        self.parser = parser


class UnknownDeviceType(ParserError):
    """Raised when asked to parse a frame for a device type with no parser."""

    def __init__(self, device_type: object):
        super().__init__(f"Unknown device type: {device_type}")
        self.device_type = device_type
