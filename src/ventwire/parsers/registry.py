"""
Parser Registry

Central registry of frame parsers, one per device type, and the
``parse_device_data`` dispatch entry point used by ingestion.
"""

import logging

from ventwire.constants import DeviceType
from ventwire.parsers.base import FrameParser, UnknownDeviceType
from ventwire.parsers.types import ParsedRecord

logger = logging.getLogger(__name__)


def _type_key(device_type: object) -> str | None:
    """Registry key for a device type given as DeviceType or exact string."""
    if isinstance(device_type, DeviceType):
        return device_type.value
    if isinstance(device_type, str):
        return device_type
    return None


class ParserRegistry:
    """
    Registry of frame parsers keyed by device type.

    Usage:
        registry.register(CPAPFrameParser())
        record = registry.get_parser("CPAP").parse(frame)

    Lookups are exact and case-sensitive: "cpap" is not a device type.
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._parsers_by_type: dict[str, FrameParser] = {}

    def register(self, parser: FrameParser) -> None:
        """
        Register a parser for its device type.

        Raises:
            ValueError: If a parser is already registered for that type
        """
        key = parser.device_type.value

        if key in self._parsers_by_type:
            existing = self._parsers_by_type[key]
            raise ValueError(
                f"Device type '{key}' already handled by {existing.__class__.__name__}"
            )

        self._parsers_by_type[key] = parser
        logger.debug(f"Registered parser: {parser}")

    def unregister(self, device_type: DeviceType | str) -> bool:
        """
        Remove the parser for a device type.

        Returns:
            True if a parser was removed, False if none was registered
        """
        key = _type_key(device_type)
        if key not in self._parsers_by_type:
            return False

        del self._parsers_by_type[key]
        logger.debug(f"Unregistered parser for {key}")
        return True

    def get_parser(self, device_type: DeviceType | str) -> FrameParser:
        """
        Get the parser for a device type.

        Raises:
            UnknownDeviceType: If no parser handles the given type
        """
        key = _type_key(device_type)
        parser = self._parsers_by_type.get(key) if key is not None else None
        if parser is None:
            raise UnknownDeviceType(device_type)
        return parser

    def is_registered(self, device_type: DeviceType | str) -> bool:
        """True if a parser handles the given device type."""
        return _type_key(device_type) in self._parsers_by_type

    def list_parsers(self) -> list[FrameParser]:
        """Get list of all registered parsers."""
        return list(self._parsers_by_type.values())

    def get_parser_info(self) -> dict[str, dict[str, object]]:
        """Metadata of every registered parser, keyed by parser ID."""
        return {
            parser.parser_id: parser.metadata.model_dump(mode="json")
            for parser in self._parsers_by_type.values()
        }

    def __len__(self) -> int:
        return len(self._parsers_by_type)

    def __repr__(self) -> str:
        return f"<ParserRegistry types={sorted(self._parsers_by_type)}>"


# Global singleton registry instance
parser_registry = ParserRegistry()


def parse_device_data(
    device_data: str, device_type: DeviceType | str
) -> ParsedRecord:
    """
    Decode a raw frame with the parser for ``device_type``.

    Registers the built-in parsers on first use if startup code has not.
    Registration is serialized, so concurrent first calls all see both
    parsers.

    Args:
        device_data: Raw telemetry string
        device_type: "CPAP" or "BIPAP" (or the DeviceType member)

    Returns:
        CPAPRecord or BIPAPRecord

    Raises:
        UnknownDeviceType: For any other device type
    """
    if not parser_registry.is_registered(device_type):
        from ventwire.parsers.register_all import register_all_parsers

        register_all_parsers()

    return parser_registry.get_parser(device_type).parse(device_data)
