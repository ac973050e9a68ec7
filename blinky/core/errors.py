"""
Error taxonomy shared by services and the HTTP layer.
Each error carries the HTTP status the API reports it with; the body is always {"error": message}.
"""


class BlinkyError(Exception):
    """Base for errors that are surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BlinkyError):
    """Missing or malformed required field. Never retried."""

    status_code = 400


class NotFoundError(BlinkyError):
    """Referenced identity, friend or push token is absent."""

    status_code = 404


class ExternalServiceError(BlinkyError):
    """AI completion or push gateway failure that could not be recovered locally."""

    status_code = 502


class StoreError(BlinkyError):
    """Durable storage failure."""

    status_code = 500
