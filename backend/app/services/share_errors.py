"""
Error taxonomy for the ChatGPT share import.

Every error carries a human-readable message (safe to show to the user)
and the HTTP status the API layer should answer with.
"""

from typing import Optional


class ShareImportError(ValueError):
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ShareLinkValidationError(ShareImportError):
    """The URL is not an https://chatgpt.com/share/<id> link. Never reaches the network."""
    status_code = 400


class ShareFetchError(ShareImportError):
    """Timeout, non-200 status, oversized body or network failure."""
    status_code = 502


class ShareExtractionError(ShareImportError):
    """The page was fetched but no conversation payload could be located."""
    status_code = 422


class ShareParseError(ShareImportError):
    """A payload was found but it is not a usable conversation graph."""
    status_code = 422
