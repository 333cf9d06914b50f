"""Authentication and authorization error types.

Each error carries a stable ``code`` that the GraphQL layer copies into the
``extensions`` of the error it reports to the client.
"""


class AuthenticationError(Exception):
    """Base class for failures tied to the caller's identity."""

    code = "UNAUTHENTICATED"

    @property
    def extensions(self) -> dict[str, str]:
        return {"code": self.code}


class AuthenticationRequired(AuthenticationError):
    """Raised when no credential is presented where one is mandatory."""

    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(message)


class InvalidCredential(AuthenticationError):
    """Raised for malformed, expired, or forged tokens and failed logins."""

    code = "INVALID_CREDENTIAL"

    def __init__(self, message: str = "Invalid credential.") -> None:
        super().__init__(message)


class NotAuthorized(AuthenticationError):
    """Raised when an authenticated caller does not own the target resource."""

    code = "FORBIDDEN"

    def __init__(self, message: str = "Not authorized to perform this action.") -> None:
        super().__init__(message)
