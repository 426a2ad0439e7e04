"""Error taxonomy shared by the ledger store, the services and the API.

Every error carries the HTTP status the API layer maps it to. Callers get
these verbatim; nothing in the core swallows them or substitutes defaults.
"""


class TrackerError(Exception):
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(TrackerError, ValueError):
    """Negative amount, missing required field or malformed enum value."""

    http_status = 400


class NotFound(TrackerError, LookupError):
    """No record matches the owner-scoped lookup.

    Raised identically whether the record is missing or belongs to someone
    else, so existence never leaks across owners.
    """

    http_status = 404


class Conflict(TrackerError):
    """A compare-and-set lost against a concurrent writer."""

    http_status = 409


class StorageUnavailable(TrackerError):
    http_status = 503
