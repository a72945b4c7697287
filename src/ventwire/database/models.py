"""
SQLAlchemy ORM models for the ventwire database.

- DeviceData: one row per ingested frame, raw text plus decoded document
- DeviceConfig: latest configuration pushed to a device and whether the
  device still has to receive it
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ventwire.constants import DataSource
from ventwire.database.types import StrictJSON


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def utc_now() -> datetime:
    """Return current UTC timestamp for database defaults."""
    return datetime.now(UTC)


class DeviceData(Base):
    """A single telemetry frame received from a device."""

    __tablename__ = "device_data"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    device_type: Mapped[str] = mapped_column(String(16))
    device_id: Mapped[str] = mapped_column(String, index=True)
    device_status: Mapped[float] = mapped_column(Float)
    raw_data: Mapped[str] = mapped_column(Text)
    parsed_data: Mapped[dict[str, Any]] = mapped_column(StrictJSON)
    data_source: Mapped[str] = mapped_column(
        String(16), default=DataSource.DIRECT.value, index=True
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("device_type IN ('CPAP', 'BIPAP')", name="chk_data_type"),
        CheckConstraint(
            "data_source IN ('cloud', 'software', 'direct')", name="chk_data_source"
        ),
        CheckConstraint("length(device_id) > 0", name="chk_data_device_id"),
        Index("idx_device_data_device_time", "device_id", "timestamp"),
    )

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        """Serializable view of the row; raw_data is left out unless asked for."""
        result: dict[str, Any] = {
            "id": self.id,
            "device_type": self.device_type,
            "device_id": self.device_id,
            "device_status": self.device_status,
            "parsed_data": self.parsed_data,
            "data_source": self.data_source,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
        if include_raw:
            result["raw_data"] = self.raw_data
        return result

    def __repr__(self) -> str:
        return f"<DeviceData(id={self.id}, device_id={self.device_id}, type={self.device_type}, source={self.data_source})>"


class DeviceConfig(Base):
    """Configuration values queued for delivery to a device."""

    __tablename__ = "device_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    device_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    device_type: Mapped[str] = mapped_column(String(16))
    config_values: Mapped[Any] = mapped_column(StrictJSON)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    pending_update: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("device_type IN ('CPAP', 'BIPAP')", name="chk_config_type"),
        CheckConstraint("length(device_id) > 0", name="chk_config_device_id"),
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "device_type": self.device_type,
            "config_values": self.config_values,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "pending_update": self.pending_update,
        }

    def __repr__(self) -> str:
        return f"<DeviceConfig(device_id={self.device_id}, pending={self.pending_update})>"
