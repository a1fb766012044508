"""
Port definitions (interfaces) for the OAuth engine.

The signing pipeline only depends on these contracts. Provider
configurations hold concrete implementations and infrastructure adapters
implement the transport.
"""

from typing import Protocol

from oauth_engine.core.domain import OAuthRequest, RestResponse, RestVerb, Token


class RestTransport(Protocol):
    """
    Port (interface) for issuing HTTP requests.

    Implemented by infrastructure adapters (e.g. HttpxTransport). The
    orchestrator hands over fully signed requests and returns the response
    unmodified.
    """

    async def send(
        self,
        verb: RestVerb,
        uri: str,
        headers: dict[str, str],
        params: list[tuple[str, str]],
        content: bytes | None = None,
    ) -> RestResponse:
        """
        Send one HTTP request.

        Args:
            verb: HTTP verb
            uri: Complete URI, query string included
            headers: Request headers
            params: Form body parameters (empty for verbs without a body)
            content: Raw body, used instead of params when set

        Returns:
            The raw response, whatever its status code

        Raises:
            TransportError: On network failure or timeout
        """
        ...


class TokenExtractor(Protocol):
    """Turns a token endpoint response body into a Token."""

    def extract(self, response: str) -> Token:
        ...


class StringExtractor(Protocol):
    """Renders a request into a string (base string, Authorization header)."""

    def extract(self, request: OAuthRequest) -> str:
        ...


class SignatureService(Protocol):
    """Computes oauth_signature over a base string."""

    @property
    def signature_method(self) -> str:
        """Wire name sent as oauth_signature_method."""
        ...

    def get_signature(
        self, base_string: str, consumer_secret: str, token_secret: str
    ) -> str:
        ...


class TimestampService(Protocol):
    """Produces the freshness values of each signed request."""

    def get_timestamp_in_seconds(self) -> str:
        ...

    def get_nonce(self) -> str:
        ...
