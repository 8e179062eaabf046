# lanprint/core/exceptions.py
from __future__ import annotations


class PrinterError(RuntimeError):
    """Base class for errors raised by the printer core."""


class InvalidArgumentError(PrinterError):
    """Caller passed a missing or malformed argument. Raised synchronously."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class ImageDecodeError(PrinterError):
    """The logo image could not be decoded, scaled or packed."""
