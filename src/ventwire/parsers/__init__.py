"""Telemetry frame parsers."""

from ventwire.parsers.base import FrameParser, ParserError, UnknownDeviceType
from ventwire.parsers.classifier import classify_device_type
from ventwire.parsers.frame import split_sections
from ventwire.parsers.registry import parse_device_data, parser_registry
from ventwire.parsers.types import BIPAPRecord, CPAPRecord, ParsedRecord

__all__ = [
    "BIPAPRecord",
    "CPAPRecord",
    "FrameParser",
    "ParsedRecord",
    "ParserError",
    "UnknownDeviceType",
    "classify_device_type",
    "parse_device_data",
    "parser_registry",
    "split_sections",
]
