"""
Queries over stored device data and device configuration.

Each function opens its own transactional scope and returns plain dicts,
so callers never hold ORM objects past the session that loaded them.
"""

import json
import logging

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ventwire.constants import (
    DATA_SOURCE_VALUES,
    DEFAULT_CONFIG_DEVICE_TYPE,
    DEFAULT_HISTORY_LIMIT,
    DEVICE_TYPE_VALUES,
)
from ventwire.database import models
from ventwire.database.models import utc_now
from ventwire.database.session import session_scope
from ventwire.ingest.errors import ConfigNotFound, InvalidPayload

logger = logging.getLogger(__name__)


def find_pending_config(db: Session, device_id: str) -> models.DeviceConfig | None:
    """Configuration still waiting to be delivered to ``device_id``, if any."""
    return db.scalars(
        select(models.DeviceConfig).where(
            models.DeviceConfig.device_id == device_id,
            models.DeviceConfig.pending_update.is_(True),
        )
    ).first()


def _find_config(db: Session, device_id: str) -> models.DeviceConfig:
    config = db.scalars(
        select(models.DeviceConfig).where(models.DeviceConfig.device_id == device_id)
    ).first()
    if config is None:
        raise ConfigNotFound(device_id)
    return config


def get_device_config(device_id: str) -> dict[str, Any]:
    """
    Get a device's configuration.

    Raises:
        ConfigNotFound: If the device has no configuration
    """
    with session_scope() as db:
        return _find_config(db, device_id).to_dict()


def set_device_config(
    device_id: str, config_values: Any, device_type: str | None = None
) -> dict[str, Any]:
    """
    Create or replace a device's configuration and mark it pending.

    Args:
        device_id: Target device
        config_values: JSON-serializable configuration document
        device_type: "CPAP" or "BIPAP"; new configs default to CPAP and an
            existing config keeps its type when omitted

    Raises:
        InvalidPayload: If config_values is missing or not strict JSON (NaN,
            Infinity), or device_type is unknown
    """
    if config_values is None:
        raise InvalidPayload("config_values is required")
    if device_type is not None and device_type not in DEVICE_TYPE_VALUES:
        raise InvalidPayload("device_type must be CPAP or BIPAP")
    try:
        json.dumps(config_values, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise InvalidPayload(f"config_values must be strict JSON: {e}") from e

    with session_scope() as db:
        config = db.scalars(
            select(models.DeviceConfig).where(
                models.DeviceConfig.device_id == device_id
            )
        ).first()

        if config is None:
            config = models.DeviceConfig(
                device_id=device_id,
                device_type=device_type or DEFAULT_CONFIG_DEVICE_TYPE.value,
                config_values=config_values,
                pending_update=True,
            )
            db.add(config)
            logger.info(f"Created configuration for device {device_id}")
        else:
            config.config_values = config_values
            config.pending_update = True
            config.last_updated = utc_now()
            if device_type:
                config.device_type = device_type
            logger.info(f"Updated configuration for device {device_id}")

        db.flush()
        return config.to_dict()


def mark_config_delivered(device_id: str) -> dict[str, Any]:
    """
    Clear the pending flag once a device has received its configuration.

    Raises:
        ConfigNotFound: If the device has no configuration
    """
    with session_scope() as db:
        config = _find_config(db, device_id)
        config.pending_update = False
        db.flush()
        logger.info(f"Configuration delivered to device {device_id}")
        return {"device_id": config.device_id, "pending_update": config.pending_update}


def get_device_history(
    device_id: str,
    limit: int = DEFAULT_HISTORY_LIMIT,
    offset: int = 0,
    data_source: str | None = None,
) -> dict[str, Any]:
    """
    Page through a device's stored frames, newest first.

    Raw frame text is left out of the records. An unrecognized
    ``data_source`` filter is ignored rather than rejected.

    Returns:
        {"records": [...], "pagination": {"total", "limit", "offset", "has_more"}}
    """
    limit = limit if limit > 0 else DEFAULT_HISTORY_LIMIT
    offset = max(offset, 0)

    conditions = [models.DeviceData.device_id == device_id]
    if data_source in DATA_SOURCE_VALUES:
        conditions.append(models.DeviceData.data_source == data_source)

    with session_scope() as db:
        rows = db.scalars(
            select(models.DeviceData)
            .where(*conditions)
            .order_by(models.DeviceData.timestamp.desc(), models.DeviceData.id.desc())
            .limit(limit)
            .offset(offset)
        ).all()
        total = db.scalar(
            select(func.count()).select_from(models.DeviceData).where(*conditions)
        ) or 0

        return {
            "records": [row.to_dict() for row in rows],
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "has_more": offset + limit < total,
            },
        }
