"""
Outbound messages to devices.

ventwire does not talk to AWS IoT Core itself. A deployment passes an
object with a ``publish(topic, message)`` method to IngestService; this
module defines that interface and the message bodies devices expect.
"""

from datetime import UTC, datetime
from typing import Any, Protocol

from ventwire.constants import ACK_STATUS_RECEIVED, CONFIG_UPDATE_ACTION


class ConfigPublisher(Protocol):
    """Anything that can deliver a JSON message to a device topic."""

    def publish(self, topic: str, message: dict[str, Any]) -> None: ...


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def build_config_message(device_id: str, config_values: Any) -> dict[str, Any]:
    """Body of a configuration update pushed to a device."""
    return {
        "device_id": device_id,
        "config": config_values,
        "timestamp": _now_iso(),
        "action": CONFIG_UPDATE_ACTION,
    }


def build_ack_message(device_id: str, message_id: str) -> dict[str, Any]:
    """Body of the acknowledgment for a received IoT message."""
    return {
        "device_id": device_id,
        "message_id": message_id,
        "status": ACK_STATUS_RECEIVED,
        "timestamp": _now_iso(),
    }
