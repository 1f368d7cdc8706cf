"""Errors raised by the content, resume and auth layers.

Each error carries the HTTP status it maps to; ``main.py`` turns them into
JSON responses.
"""

from typing import List, Optional


class PortfolioError(Exception):
    """Base class for every error the API reports to callers."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(PortfolioError):
    """
    A request is missing a required field or carries an invalid value.

    Attributes:
        message: Error description
        fields: Names of the offending fields
    """

    status_code = 400

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        self.fields = fields or []
        super().__init__(message)


class AuthenticationError(PortfolioError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(PortfolioError):
    status_code = 404


class ConflictError(PortfolioError):
    # Duplicate slugs are reported as bad requests, not 409
    status_code = 400


class StorageError(PortfolioError):
    """
    Reading or writing the content store failed.

    ``message`` is the generic text returned to callers; ``detail`` is logged
    server-side only.
    """

    status_code = 500

    def __init__(self, message: str = "Internal server error", detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)
