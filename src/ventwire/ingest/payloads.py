"""
Ingestion payload handling.

Frames reach the service in two shapes: a flat JSON body from applications
calling the API directly, and an AWS IoT Core rule message that may wrap
the device body under ``payload`` (as a nested object, a JSON string, or
base64-encoded JSON). This module turns either into a DevicePayload and
resolves the device identity.
"""

import base64
import binascii
import json
import logging
import time

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ventwire.constants import (
    DEVICE_TYPE_VALUES,
    FALLBACK_IOT_DEVICE_TYPE,
    DeviceType,
)
from ventwire.ingest.errors import InvalidPayload
from ventwire.parsers.classifier import classify_device_type

logger = logging.getLogger(__name__)


class DevicePayload(BaseModel):
    """A device data submission after envelope unwrapping."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    device_status: float = Field(
        allow_inf_nan=False, description="Device status code (0 is valid)"
    )
    device_data: str = Field(min_length=1, description="Raw telemetry frame")
    device_type: str | None = Field(default=None, description="Declared device type")
    device_id: str | None = Field(default=None, description="Device identifier")
    topic: str | None = Field(default=None, description="IoT Core topic")
    message_id: str | None = Field(
        default=None, alias="messageId", description="IoT message ID to acknowledge"
    )

    @field_validator("device_id", "message_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        # Gateways send numeric IDs; bools are not IDs
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("device_id", "topic", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value:
            return None
        return value

    @field_validator("device_type", mode="before")
    @classmethod
    def _declared_type_as_text(cls, value: Any) -> str | None:
        # Non-string declarations are unrecognized types, not invalid payloads
        if value is None or value == "":
            return None
        return value if isinstance(value, str) else str(value)


def load_payload(data: Mapping[str, Any]) -> DevicePayload:
    """
    Validate a submission body.

    Raises:
        InvalidPayload: With the first failing field named in the message
    """
    try:
        return DevicePayload.model_validate(dict(data))
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "payload"
        if error["type"] == "missing":
            raise InvalidPayload(f"{field} is required") from e
        raise InvalidPayload(f"{field}: {error['msg']}") from e


def _decode_string_payload(raw: str) -> Any:
    """Decode a string payload as base64 JSON, falling back to plain JSON."""
    try:
        return json.loads(base64.b64decode(raw, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        pass

    try:
        return json.loads(raw)
    except ValueError as e:
        raise InvalidPayload(f"payload is neither base64 JSON nor JSON: {e}") from e


def unwrap_envelope(body: Mapping[str, Any]) -> dict[str, Any]:
    """
    Extract the device body from an IoT Core message.

    Args:
        body: Request body as received

    Returns:
        The nested device body when ``payload`` is present, else ``body``

    Raises:
        InvalidPayload: If a string payload cannot be decoded to an object
    """
    nested = body.get("payload")
    if nested is None or nested == "":
        return dict(body)

    if isinstance(nested, str):
        decoded = _decode_string_payload(nested)
        logger.debug("Decoded string payload from IoT envelope")
    else:
        decoded = nested
        logger.debug("Extracted nested payload from IoT envelope")

    if not isinstance(decoded, Mapping):
        raise InvalidPayload("payload must decode to a JSON object")
    return dict(decoded)


def device_id_from_topic(topic: str | None) -> str | None:
    """
    Derive a device ID from an IoT topic.

    Supported layouts:
        devices/{device_id}/...  -> device_id
        esp32/data{n} or esp32/{n} -> n (the literal "data" is removed)

    Returns:
        Device ID, or None when the topic has no recognizable layout
    """
    if not topic:
        return None

    parts = topic.split("/")
    if len(parts) < 2:
        return None

    if parts[0] == "devices":
        return parts[1] or None

    if parts[0] == "esp32":
        device_id = parts[1].replace("data", "", 1)
        return device_id or parts[1] or "esp32"

    return None


def resolve_device_type(declared: str | None, device_data: str) -> DeviceType:
    """
    Decide the device type of an IoT frame.

    A recognized declared type wins. With no declaration the frame is
    classified from its content. A declared but unrecognized type falls
    back to BIPAP.
    """
    if declared is None:
        detected = classify_device_type(device_data)
        logger.debug(f"Auto-detected device type {detected.value}")
        return detected

    if declared in DEVICE_TYPE_VALUES:
        return DeviceType(declared)

    logger.warning(
        f"Unrecognized device type {declared!r}, assuming {FALLBACK_IOT_DEVICE_TYPE.value}"
    )
    return FALLBACK_IOT_DEVICE_TYPE


def fallback_device_id() -> str:
    """Device ID for submissions that carry none: device_{epoch_ms}."""
    return f"device_{int(time.time() * 1000)}"


def config_topic_for(topic: str | None, device_id: str) -> str:
    """
    Topic on which a device expects configuration updates.

    ESP32 gateways subscribe on the topic they publish to; everything else
    listens on devices/{device_id}/config/update.
    """
    if topic and topic.startswith("esp32/"):
        return topic
    return f"devices/{device_id}/config/update"


def ack_topic_for(device_id: str) -> str:
    """Topic on which message acknowledgments are published."""
    return f"devices/{device_id}/ack"
