"""
ventwire Server

MCP server exposing frame decoding and stored device data as tools.
"""

import json
import logging

from typing import Any

from mcp.server.fastmcp import FastMCP

from ventwire.constants import (
    BIPAP_SECTIONS,
    CPAP_SECTIONS,
    DEFAULT_HISTORY_LIMIT,
    DeviceType,
)
from ventwire.ingest import repository
from ventwire.ingest.errors import IngestError
from ventwire.parsers import (
    UnknownDeviceType,
    classify_device_type,
    parse_device_data,
)
from ventwire.parsers.mapping import BIPAP_LAYOUT, BIPAP_PASSTHROUGH, CPAP_LAYOUT

logger = logging.getLogger(__name__)

INSTRUCTIONS = """
ventwire decodes telemetry frames from CPAP and BIPAP ventilators.

A frame is comma-separated text such as
*,S,141125,1447,G,12.2,1.0,H,10.6,10.6,20.0,1.0,I,5.0,1.0,1.0,1.0,0.0,1.0,1.0,#
where single uppercase letters open sections of positional values.

AVAILABLE TOOLS:
- parse_frame: Decode a frame into named fields (device type optional)
- classify_frame: Detect whether a frame is CPAP or BIPAP
- get_device_history: Stored frames for a device, newest first
- get_device_config: Configuration queued for a device

Values are decoded syntactically only; no unit conversion or clinical
validation is applied.
"""

server = FastMCP(name="ventwire", instructions=INSTRUCTIONS)


# ============================================================================
# Resources (Documentation)
# ============================================================================


@server.resource("docs://frame-layout")
def get_frame_layout_documentation() -> str:
    """Section letters and positional field names per device type."""

    def describe(layout: dict[str, Any]) -> dict[str, Any]:
        return {
            letter: {"group": group, "fields": list(fields)}
            for group, (letter, _model, fields) in layout.items()
        }

    bipap = describe(BIPAP_LAYOUT)
    for group, letter in BIPAP_PASSTHROUGH.items():
        bipap[letter] = {"group": group, "fields": "all values, unnamed"}

    return json.dumps(
        {
            "CPAP": {"sections": list(CPAP_SECTIONS), "layout": describe(CPAP_LAYOUT)},
            "BIPAP": {"sections": list(BIPAP_SECTIONS), "layout": bipap},
        },
        indent=2,
    )


# ============================================================================
# Tools (Actions)
# ============================================================================


@server.tool("parse_frame")
def parse_frame(*, frame: str, device_type: str | None = None) -> dict[str, Any]:
    """
    Decode a telemetry frame.

    Args:
        frame: Raw frame text
        device_type: "CPAP" or "BIPAP"; detected from the frame when omitted

    Returns:
        Decoded document with the device type used
    """
    resolved = device_type or classify_device_type(frame).value
    try:
        record = parse_device_data(frame, resolved)
    except UnknownDeviceType as e:
        logger.error(f"Error parsing frame: {e}")
        raise ValueError(f"{e}. Use one of: {', '.join(t.value for t in DeviceType)}") from e

    return {"device_type": record.device_type.value, **record.to_document()}


@server.tool("classify_frame")
def classify_frame(*, frame: str) -> str:
    """
    Detect the device type of a telemetry frame.

    Returns:
        "CPAP" or "BIPAP"
    """
    return classify_device_type(frame).value


@server.tool("get_device_history")
def get_device_history(
    *,
    device_id: str,
    limit: int = DEFAULT_HISTORY_LIMIT,
    offset: int = 0,
    data_source: str | None = None,
) -> dict[str, Any]:
    """
    Get stored frames for a device, newest first.

    Args:
        device_id: Device identifier
        limit: Maximum number of records
        offset: Records to skip
        data_source: Optional filter: "cloud", "software" or "direct"

    Returns:
        Records and pagination info
    """
    try:
        return repository.get_device_history(
            device_id, limit=limit, offset=offset, data_source=data_source
        )
    except Exception as e:
        logger.error(f"Error getting device history: {e}", exc_info=True)
        raise ValueError(f"Error getting device history: {e}") from e


@server.tool("get_device_config")
def get_device_config(*, device_id: str) -> dict[str, Any]:
    """
    Get the configuration queued for a device.

    Returns:
        Config values, device type and whether delivery is pending
    """
    try:
        return repository.get_device_config(device_id)
    except IngestError as e:
        raise ValueError(str(e)) from e
    except Exception as e:
        logger.error(f"Error getting device config: {e}", exc_info=True)
        raise ValueError(f"Error getting device config: {e}") from e
