"""
Ledger exception taxonomy.

Services raise these; they never raise HTTP types. main.py renders every
LedgerError as {"error": message} with the status code carried by the class,
which is the shape the console surfaces verbatim to the user.

Messages are safe to show: they describe what the caller sent, never
internal state such as SQL errors or paths.
"""
import logging

from fastapi import status

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for business-domain errors with a user-facing message."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """
    Bad or missing fields.

    Examples: "At least one item is required", "Unknown serial number: X1"
    """

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(LedgerError):
    """
    Invalid, expired or missing token.

    Same message whether the user does not exist or the password is wrong,
    so accounts cannot be enumerated.
    """

    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(LedgerError):
    """Authenticated, but the role may not perform this operation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(LedgerError):
    """Counterparty, sale, branch or credit-book item is absent."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(LedgerError):
    """
    The request is well formed but clashes with current ledger state.

    Examples: serial already sold, over-payment, deleting a reseller who
    still owes money.
    """

    status_code = status.HTTP_409_CONFLICT
