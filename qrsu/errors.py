"""Error kinds raised by the validation, shortening and rendering services."""
from typing import Optional


class QRSUError(Exception):
    """Base class for service errors"""

    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidURL(QRSUError, ValueError):
    default_message = "Invalid URL. Please enter a valid URL."


class UnsafeURL(QRSUError, ValueError):
    default_message = "This URL may be unsafe. Please try a different URL."


class UnrecognizedExtension(QRSUError, ValueError):
    """Advisory: the host has no known public suffix. Callers may override."""

    default_message = "The domain extension is not recognized."


class PersistenceFailure(QRSUError):
    default_message = "Failed to save the short URL, please try again later."


class RenderFailure(QRSUError):
    default_message = "Failed to generate the QR code. The content may be too long."
