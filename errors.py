# errors.py
"""Error taxonomy for the expense engine.

Every error carries the HTTP status the API layer answers with, so routes can
turn any of them into an ``HTTPException`` without a lookup table.
"""


class LedgerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed or missing request fields. Raised before any write."""
    status_code = 400


class InvalidAmount(ValidationError):
    pass


class EmptyParticipantSet(ValidationError):
    pass


class NotFoundError(LedgerError):
    """The referenced group does not exist or has no members."""
    status_code = 404


class MembershipError(LedgerError):
    """Payer or participant is not part of the group."""
    status_code = 422


class PersistenceError(LedgerError):
    """The atomic write failed and was rolled back."""
    status_code = 503
