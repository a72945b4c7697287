"""Custom SQLAlchemy column types for ventwire."""

import json

from typing import Any

from sqlalchemy import Text, TypeDecorator


class StrictJSON(TypeDecorator[Any]):
    """
    A JSON text column that refuses values which are not strict JSON.

    Decoded frames and device config values are stored as documents; NaN
    and Infinity are rejected at bind time so every stored row can be read
    back by any JSON consumer.

    Example:
        class DeviceData(Base):
            parsed_data = mapped_column(StrictJSON)

        row.parsed_data = {"sections": {"S": [141125.0, 1447.0]}}
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        """
        Serialize a Python value to JSON text.

        Raises:
            ValueError: If value cannot be serialized to strict JSON
        """
        if value is None:
            return None

        try:
            return json.dumps(value, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"Cannot serialize value to JSON: {e}. Value type: {type(value).__name__}"
            ) from e

    def process_result_value(self, value: str | None, dialect: Any) -> Any:
        """
        Deserialize stored JSON text.

        Raises:
            ValueError: If stored value is not valid JSON
        """
        if value is None:
            return None

        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Stored value is not valid JSON: {e}. Value: {value[:100]}..."
            ) from e
