"""Exception taxonomy.

Only document-level I/O and decoding problems are raised. Irregular
annotation notation is reported as data on the parse result instead.
"""

from __future__ import annotations


class AozorizeError(Exception):
    """Base class for all errors raised by aozorize."""


class DocumentError(AozorizeError):
    """A single document could not be processed; the batch carries on."""

    kind = "document_failure"

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class IoFailure(DocumentError):
    kind = "io_failure"


class EncodingFailure(DocumentError):
    kind = "encoding_failure"


class RegistryError(AozorizeError):
    """The work registry is missing or unreadable."""
