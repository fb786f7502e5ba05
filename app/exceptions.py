"""Exceptions raised by the detection engine and its collaborators."""

from typing import Optional


class DetectorError(Exception):
    """Base class for all detector errors."""


class FingerprintConfigError(DetectorError):
    """A fingerprint entry is malformed (bad regex, category or confidence tier)."""

    def __init__(self, platform: str, category: str, pattern: str, reason: str):
        super().__init__(f"Invalid fingerprint for {platform}/{category} ({pattern!r}): {reason}")
        self.platform = platform
        self.category = category
        self.pattern = pattern
        self.reason = reason


class FetchError(DetectorError):
    """The target page could not be retrieved."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url
        self.message = message


class BatchInputError(DetectorError):
    """Batch input (CSV upload or URL column) could not be used."""

    def __init__(self, message: str, available_columns: Optional[list] = None):
        super().__init__(message)
        self.message = message
        self.available_columns = available_columns or []
