"""
Domain errors raised by services and mapped to HTTP responses in main.py.
"""


class CompIntelError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidParameterError(CompIntelError):
    """Caller supplied an unrecognized dispensary key or an out-of-range value."""

    status_code = 400


class UpstreamFetchError(CompIntelError):
    """The data store was unreachable or a query failed."""

    status_code = 502

    def __init__(self, message: str, dispensary_id: str | None = None):
        super().__init__(message)
        self.dispensary_id = dispensary_id
