"""Auth-specific errors."""


class AuthenticationError(Exception):
    """Raised when a request cannot be resolved to an admin.

    Covers a missing or non-Bearer Authorization header, a Firebase ID
    token that fails verification (expired, issued for another project,
    malformed), a token without a uid, and a verified user with no
    admins/{uid} document.

    The message names which of these happened and is only logged; every
    case reaches the client as the same 401.
    """
