"""
ventwire: ventilator telemetry ingestion

Decodes CPAP/BIPAP wire-format frames and stores them with their raw text.
"""

from typing import Any

from ventwire.parsers import (
    UnknownDeviceType,
    classify_device_type,
    parse_device_data,
    split_sections,
)

__all__ = [
    "UnknownDeviceType",
    "classify_device_type",
    "parse_device_data",
    "server",
    "split_sections",
]


def __getattr__(name: str) -> Any:
    """Lazy load server so importing the parser does not pull in MCP."""
    if name == "server":
        from ventwire.server import server

        return server
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
