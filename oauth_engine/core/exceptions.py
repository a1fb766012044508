"""
Exceptions raised by the OAuth engine.

Every error is surfaced synchronously to the caller and none of them is
retried internally: a malformed response or an unauthenticated call cannot
succeed without the caller changing something first.
"""


class OAuthError(Exception):
    """Base exception for all OAuth engine errors."""

    pass


class InvalidTokenError(OAuthError):
    """Raised when a token is built from an empty or missing key."""

    pass


class MalformedTokenResponseError(OAuthError):
    """
    Raised when a provider response cannot be parsed into a token.

    The body is expected to be application/x-www-form-urlencoded and to
    carry both the token key and the token secret fields.
    """

    pass


class OAuthParametersMissingError(OAuthError):
    """Raised when a request is signed or rendered without any oauth_* parameter."""

    pass


class NoAccessTokenError(OAuthError):
    """Raised when a signed request is attempted before an access token exists."""

    pass


class RequestTokenMissingError(OAuthError):
    """Raised when the access token exchange runs without a request token."""

    pass


class VerifierRequiredError(OAuthError):
    """Raised when no verifier is available for the access token exchange."""

    pass


class TokenExchangeFailedError(OAuthError):
    """
    Raised when the provider rejects a token request.

    Carries the HTTP status and the raw body so callers can inspect the
    provider's reason (e.g. oauth_problem=token_rejected).
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProviderUnreachableError(OAuthError):
    """Raised when the transport fails during the request or access token flow."""

    pass


class ResponseDecodingError(OAuthError):
    """Raised when a response body cannot be decoded into the requested type."""

    pass


class TransportError(OAuthError):
    """
    Raised by REST transports on network failures (connection, timeout).

    HTTP error statuses are not transport errors: the response is returned
    to the caller as-is.
    """

    pass
