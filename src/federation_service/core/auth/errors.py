"""Federation error taxonomy.

Every failure of the sign-in flow surfaces as one of these typed errors.
None of them are retried; the HTTP layer turns ``code`` into the failure
redirect the front end receives.
"""


class FederationError(Exception):
    """Base class for failures of the federated sign-in flow."""

    code = "federation_failed"


class TokenExchangeError(FederationError):
    """Authorization code could not be exchanged for an access token."""

    code = "token_exchange_failed"


class ProfileFetchError(FederationError):
    """Identity provider API call failed (emails or profile)."""

    code = "profile_fetch_failed"


class NoPrimaryEmailError(FederationError):
    """Provider account has no usable primary email address."""

    code = "no_primary_email"


class DirectoryError(FederationError):
    """Lookup or write against the user/organization store failed."""

    code = "directory_error"


class UserAlreadyExistsError(DirectoryError):
    """A user with the same email was committed concurrently."""

    code = "user_exists"


class HashingError(FederationError):
    """Password hash could not be computed."""

    code = "hashing_failed"


class UserNotFoundError(Exception):
    """No local user is registered for the requested email.

    Not a FederationError: the sign-in flow treats it as the trigger
    for provisioning rather than as a failure.
    """
