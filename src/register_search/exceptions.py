"""Exceptions raised by register-search."""

from __future__ import annotations


class RegisterSearchError(RuntimeError):
    """Base class for register-search failures."""


class DataAcquisitionError(RegisterSearchError):
    """Raised when a dataset cannot be fetched, decompressed or read."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source
