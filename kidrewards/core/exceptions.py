"""Error taxonomy shared by services and the HTTP layer.

Every error carries a stable ``code`` and the HTTP status it maps to, so the
exception handler in :mod:`kidrewards.main` can render them without knowing
about individual classes.
"""

from __future__ import annotations


class KidRewardsError(Exception):
    """Base class for all KidRewards specific errors."""

    code = "error"
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentials(KidRewardsError):
    """Raised when a username/password pair does not authenticate."""

    code = "invalid_credentials"
    status_code = 401
    default_message = "Incorrect username or password"


class Unauthorized(KidRewardsError):
    """Raised for a missing, malformed, forged or expired token."""

    code = "unauthorized"
    status_code = 401
    default_message = "Invalid or expired token"


class Forbidden(KidRewardsError):
    """Raised when the principal's role is not allowed to call an operation."""

    code = "forbidden"
    status_code = 403
    default_message = "Not allowed for this role"


class BadRequest(KidRewardsError):
    code = "bad_request"
    status_code = 400
    default_message = "Bad request"


class UnknownKid(KidRewardsError):
    """Raised when a kid does not exist or is not owned by the caller.

    Both cases share this error so a parent cannot probe for other families' kids.
    """

    code = "unknown_kid"
    status_code = 404
    default_message = "Unknown kidId for this parent"


class NotFound(KidRewardsError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class InsufficientPoints(KidRewardsError):
    """Raised when a spend would take a balance below the required minimum."""

    code = "insufficient_points"
    status_code = 400
    default_message = "Not enough points"


class Internal(KidRewardsError):
    """Raised when the store fails to commit a unit of work."""

    code = "internal"
    status_code = 500
    default_message = "Storage failure"
