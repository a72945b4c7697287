"""
Ingestion service.

Turns a device submission into a stored DeviceData row:

1. Validate the payload (direct) or unwrap the IoT envelope and resolve
   device identity (IoT)
2. Decode the frame with the parser for its device type
3. Save the row, retrying with linear backoff when storage is unavailable
4. Deliver any pending configuration (and, for IoT, an acknowledgment)
   through the configured publisher
"""

import logging
import time
import uuid

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy.exc import DBAPIError, SQLAlchemyError, StatementError

from ventwire.constants import DEVICE_TYPE_VALUES, DataSource, DeviceType
from ventwire.database import models
from ventwire.database.session import session_scope
from ventwire.ingest.errors import InvalidPayload, StorageUnavailable
from ventwire.ingest.payloads import (
    DevicePayload,
    ack_topic_for,
    config_topic_for,
    device_id_from_topic,
    fallback_device_id,
    load_payload,
    resolve_device_type,
    unwrap_envelope,
)
from ventwire.ingest.publisher import (
    ConfigPublisher,
    build_ack_message,
    build_config_message,
)
from ventwire.ingest.repository import find_pending_config
from ventwire.parsers import parse_device_data

logger = logging.getLogger(__name__)


class ConfigUpdate(BaseModel):
    """Pending configuration found for the submitting device."""

    available: bool = False
    published: bool = False
    config_values: Any = None


class IngestResult(BaseModel):
    """Outcome of a successful ingestion."""

    request_id: str
    record_id: int
    device_id: str
    device_type: DeviceType
    data_source: DataSource
    timestamp: datetime
    config_update: ConfigUpdate = Field(default_factory=ConfigUpdate)


def new_request_id() -> str:
    """Correlation ID used in log lines for one submission."""
    return f"req_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class IngestService:
    """
    Ingests device submissions into the database.

    Usage:
        init_database()
        service = IngestService(publisher=my_iot_client)
        result = service.ingest_iot(request_body)

    The database must be initialized before ingesting.
    """

    def __init__(
        self,
        publisher: ConfigPublisher | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the service.

        Args:
            publisher: Delivers config updates and acks; None disables delivery
            max_attempts: Save attempts before giving up (default from config)
            backoff_seconds: Base delay; attempt n waits n * backoff_seconds
            sleep: Delay function, replaceable in tests
        """
        if max_attempts is None or backoff_seconds is None:
            from ventwire.config import get_ingest_settings

            configured_attempts, configured_backoff = get_ingest_settings()
            max_attempts = max_attempts if max_attempts is not None else configured_attempts
            backoff_seconds = (
                backoff_seconds if backoff_seconds is not None else configured_backoff
            )

        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        self.publisher = publisher
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def ingest_direct(self, body: Mapping[str, Any]) -> IngestResult:
        """
        Ingest a submission made directly by an application.

        The device type must be declared as CPAP or BIPAP.

        Raises:
            InvalidPayload: On missing/invalid fields
            StorageUnavailable: If the row could not be saved
        """
        request_id = new_request_id()
        payload = load_payload(body)

        if payload.device_type not in DEVICE_TYPE_VALUES:
            raise InvalidPayload("device_type is required and must be CPAP or BIPAP")

        device_type = DeviceType(payload.device_type)
        device_id = payload.device_id or fallback_device_id()

        return self._ingest(
            request_id,
            payload,
            device_id,
            device_type,
            DataSource.SOFTWARE,
            config_topic=f"devices/{device_id}/config/update",
        )

    def ingest_iot(self, body: Mapping[str, Any]) -> IngestResult:
        """
        Ingest a message forwarded by an AWS IoT Core rule.

        Device ID falls back to the topic, then to a generated ID. Device
        type falls back to classification of the frame.

        Raises:
            InvalidPayload: On undecodable envelopes or missing fields
            StorageUnavailable: If the row could not be saved
        """
        request_id = new_request_id()
        logger.info(f"[{request_id}] Received IoT data request")

        payload = load_payload(unwrap_envelope(body))

        device_id = (
            payload.device_id
            or device_id_from_topic(payload.topic)
            or fallback_device_id()
        )
        device_type = resolve_device_type(payload.device_type, payload.device_data)

        result = self._ingest(
            request_id,
            payload,
            device_id,
            device_type,
            DataSource.CLOUD,
            config_topic=config_topic_for(payload.topic, device_id),
        )

        if payload.message_id:
            self._publish(
                request_id,
                ack_topic_for(device_id),
                build_ack_message(device_id, payload.message_id),
            )

        logger.info(f"[{request_id}] Request completed successfully")
        return result

    def _ingest(
        self,
        request_id: str,
        payload: DevicePayload,
        device_id: str,
        device_type: DeviceType,
        data_source: DataSource,
        config_topic: str,
    ) -> IngestResult:
        parsed = parse_device_data(payload.device_data, device_type)

        record_id, timestamp = self.save_with_retry(
            request_id,
            device_type=device_type.value,
            device_id=device_id,
            device_status=payload.device_status,
            raw_data=payload.device_data,
            parsed_data=parsed.to_document(),
            data_source=data_source.value,
        )

        with session_scope() as db:
            pending = find_pending_config(db, device_id)
            config_values = pending.config_values if pending else None

        config_update = ConfigUpdate()
        if pending is not None:
            config_update = ConfigUpdate(available=True, config_values=config_values)
            if self.publisher is not None:
                config_update.published = self._publish(
                    request_id,
                    config_topic,
                    build_config_message(device_id, config_values),
                )

        return IngestResult(
            request_id=request_id,
            record_id=record_id,
            device_id=device_id,
            device_type=device_type,
            data_source=data_source,
            timestamp=timestamp,
            config_update=config_update,
        )

    def save_with_retry(self, request_id: str, **fields: Any) -> tuple[int, datetime]:
        """
        Insert a DeviceData row, retrying on storage errors.

        Attempt n that fails waits n * backoff_seconds before the next one.

        Returns:
            Tuple of (record id, record timestamp)

        Raises:
            InvalidPayload: If the row cannot be bound (e.g. non-JSON values); not retried
            StorageUnavailable: After max_attempts failures, chained to the last error
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                with session_scope() as db:
                    row = models.DeviceData(**fields)
                    db.add(row)
                    db.flush()
                    record_id, timestamp = row.id, row.timestamp
                logger.info(
                    f"[{request_id}] Saved record {record_id} for device "
                    f"{fields.get('device_id')} (attempt {attempt})"
                )
                return record_id, timestamp
            except SQLAlchemyError as e:
                if isinstance(e, StatementError) and not isinstance(e, DBAPIError):
                    # Bind-time failure: the same row fails on every attempt
                    logger.error(f"[{request_id}] Record rejected before save: {e}")
                    raise InvalidPayload(f"Record cannot be stored: {e.orig}") from e
                logger.error(f"[{request_id}] Save attempt {attempt} failed: {e}")
                if attempt == self.max_attempts:
                    raise StorageUnavailable(
                        f"Failed to save data after {self.max_attempts} attempts",
                        attempts=attempt,
                    ) from e
                delay = self.backoff_seconds * attempt
                logger.info(
                    f"[{request_id}] Retrying save in {delay:.1f}s "
                    f"({attempt}/{self.max_attempts})"
                )
                self._sleep(delay)

        raise AssertionError("unreachable")

    def _publish(self, request_id: str, topic: str, message: dict[str, Any]) -> bool:
        """Publish a message; failures are logged and reported as False."""
        if self.publisher is None:
            return False
        try:
            self.publisher.publish(topic, message)
        except Exception as e:
            logger.error(
                f"[{request_id}] Error publishing to {topic}: {e}", exc_info=True
            )
            return False
        logger.info(f"[{request_id}] Published to {topic}")
        return True
