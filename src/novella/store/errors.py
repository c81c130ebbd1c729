# ABOUTME: Error taxonomy raised by the Novella store.
# ABOUTME: Each error carries the HTTP status the request layer maps it to.


class NovellaError(Exception):
    """Base class for every error the store raises."""

    http_status = 400


class ValidationError(NovellaError):
    """Caller input is malformed or a required field is missing."""

    http_status = 400


class ConflictError(NovellaError):
    """A username or email is already registered."""

    http_status = 409


class AuthError(NovellaError):
    """Bad credentials, or a missing, unknown or expired session."""

    http_status = 401


class ForbiddenError(NovellaError):
    """The requester is authenticated but not permitted to act on the target."""

    http_status = 403


class NotFoundError(NovellaError):
    """A referenced entity does not exist."""

    http_status = 404


class PersistenceError(NovellaError):
    """The snapshot file could not be written or read.

    Raised after an in-memory mutation has already been applied: the
    change is live but its durability is unconfirmed.
    """

    http_status = 500


class SnapshotFormatError(PersistenceError):
    """The snapshot file exists but cannot be parsed into a table set."""


def status_for(exc: Exception) -> int:
    """Return the HTTP status for an exception; unknown errors map to 400."""
    if isinstance(exc, NovellaError):
        return exc.http_status
    return 400
