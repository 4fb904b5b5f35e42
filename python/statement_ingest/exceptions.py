"""
Ingestion Errors

File-level errors abort an upload before any row is stored. Row-level errors
are collected as warnings and the batch continues.
"""


class IngestionError(Exception):
    """Base class for statement ingestion errors."""

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])


class UnsupportedFileType(IngestionError):
    """The uploaded file is neither a PDF nor delimited text."""


class UnreadableFile(IngestionError):
    """The uploaded file is empty or cannot be opened."""


class EmptyExtraction(IngestionError):
    """No valid transaction could be built from the file."""


class RowBuildFailure(IngestionError, ValueError):
    """A single row could not be turned into a transaction."""


class PersistenceError(IngestionError):
    """A storage operation failed."""
