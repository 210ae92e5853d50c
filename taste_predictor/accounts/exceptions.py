"""Account layer errors.

All subclass ValueError so callers outside the HTTP layer can treat them as
plain invalid-input errors; the API maps each one to a status code.
"""


class AccountError(ValueError):
    """Base class for account layer errors."""


class EmailAlreadyRegisteredError(AccountError):
    """An account with this email already exists."""


class InvalidCredentialsError(AccountError):
    """Unknown email or wrong password (deliberately indistinguishable)."""


class InvalidTokenError(AccountError):
    """Bearer token is malformed, expired, or points at a missing account."""


class AccountNotFoundError(AccountError):
    """No account with the given id."""


class EntryNotFoundError(AccountError):
    """No history entry or saved recipe with the given id on this account."""
