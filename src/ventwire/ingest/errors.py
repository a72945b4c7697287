"""Ingestion exceptions."""


class IngestError(Exception):
    """Base exception for ingestion errors."""


class InvalidPayload(IngestError):
    """The submitted payload is missing required fields or cannot be decoded."""


class StorageUnavailable(IngestError):
    """The record could not be saved after every retry attempt."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class ConfigNotFound(IngestError):
    """No configuration exists for the requested device."""

    def __init__(self, device_id: str):
        super().__init__(f"Device configuration not found: {device_id}")
        self.device_id = device_id
