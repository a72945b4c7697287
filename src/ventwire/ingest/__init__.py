"""Device data ingestion."""

from ventwire.ingest.errors import (
    ConfigNotFound,
    IngestError,
    InvalidPayload,
    StorageUnavailable,
)
from ventwire.ingest.service import ConfigUpdate, IngestResult, IngestService

__all__ = [
    "ConfigNotFound",
    "ConfigUpdate",
    "IngestError",
    "IngestResult",
    "IngestService",
    "InvalidPayload",
    "StorageUnavailable",
]
