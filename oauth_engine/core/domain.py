"""
Core domain models for the OAuth 1.0a engine.

Tokens are immutable values, the session is the only mutable state and
requests are built once per outbound call.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from oauth_engine.core.encoding import percent_encode
from oauth_engine.core.exceptions import InvalidTokenError, RequestTokenMissingError


class RestVerb(str, Enum):
    """HTTP verbs supported by the REST transport."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @property
    def has_body(self) -> bool:
        """Whether request parameters travel in a form body for this verb."""
        return self in (RestVerb.POST, RestVerb.PUT, RestVerb.PATCH)


class SignaturePlace(str, Enum):
    """Where the OAuth parameters and signature travel."""

    HEADER = "header"
    QUERY_STRING = "query_string"


class OAuthVersion(str, Enum):
    """OAuth protocol version, also sent as oauth_version."""

    ONE = "1.0"


class SignatureType(str, Enum):
    """Signature algorithms, by their oauth_signature_method wire name."""

    HMACSHA1 = "HMAC-SHA1"
    PLAINTEXT = "PLAINTEXT"
    RSASHA1 = "RSA-SHA1"


class SessionState(str, Enum):
    """Position of a session in the OAuth 1.0a handshake."""

    NO_TOKEN = "no_token"
    REQUEST_TOKEN_OBTAINED = "request_token_obtained"
    ACCESS_TOKEN_OBTAINED = "access_token_obtained"


class Token(BaseModel):
    """
    OAuth credential: a public key and its secret.

    Used both for request tokens (temporary, before user authorization) and
    access tokens (after the verifier exchange). Equality and hashing only
    consider key and secret, never the raw response it was extracted from.
    """

    key: str = Field(description="Public token identifier (oauth_token)")
    secret: str = Field(
        default="", repr=False, description="Token secret, part of the signing key"
    )
    raw_response: str | None = Field(
        default=None, repr=False, description="Provider response body"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("key", mode="before")
    @classmethod
    def validate_key(cls, v):
        """Reject empty keys."""
        if v is None or not str(v).strip():
            raise InvalidTokenError("Token key must not be empty")
        return v

    @field_validator("secret", mode="before")
    @classmethod
    def validate_secret(cls, v):
        """A missing secret is treated as empty."""
        if v is None:
            return ""
        return v

    @classmethod
    def from_pair(cls, key: str, secret: str, raw_response: str | None = None) -> "Token":
        """Create a token from its key and secret."""
        return cls(key=key, secret=secret, raw_response=raw_response)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return (self.key, self.secret) == (other.key, other.secret)

    def __hash__(self) -> int:
        return hash((self.key, self.secret))


@dataclass(frozen=True)
class SessionSnapshot:
    """Consistent read of all session fields."""

    current_token: Token | None
    request_token: Token | None
    verifier: str | None


class OAuthSession:
    """
    Per-conversation OAuth state.

    Holds the access token, the pending request token and the verifier.
    All mutations happen under a lock so a reader never observes a partial
    update, even when one service instance is shared between threads.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._current_token: Token | None = None
        self._request_token: Token | None = None
        self._verifier: str | None = None

    @property
    def current_token(self) -> Token | None:
        with self._lock:
            return self._current_token

    @property
    def request_token(self) -> Token | None:
        with self._lock:
            return self._request_token

    @property
    def verifier(self) -> str | None:
        with self._lock:
            return self._verifier

    @property
    def state(self) -> SessionState:
        """Current handshake state derived from the held tokens."""
        with self._lock:
            if self._current_token is not None:
                return SessionState.ACCESS_TOKEN_OBTAINED
            if self._request_token is not None:
                return SessionState.REQUEST_TOKEN_OBTAINED
            return SessionState.NO_TOKEN

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                current_token=self._current_token,
                request_token=self._request_token,
                verifier=self._verifier,
            )

    def set_request_token(self, token: Token) -> None:
        with self._lock:
            self._request_token = token

    def set_verifier(self, verifier: str | None) -> None:
        with self._lock:
            self._verifier = verifier

    def set_access_token(self, token: Token) -> None:
        """
        Install an access token.

        The request token and verifier are single-use, so they are dropped
        in the same step.
        """
        with self._lock:
            self._current_token = token
            self._request_token = None
            self._verifier = None

    def complete_exchange(self, request_token: Token, access_token: Token) -> None:
        """
        Install the access token obtained for request_token.

        Raises:
            RequestTokenMissingError: If the session no longer holds that
                request token, e.g. it was reset while the exchange ran
        """
        with self._lock:
            if self._request_token is not request_token:
                raise RequestTokenMissingError(
                    "Request token was discarded during the exchange, access token dropped"
                )
            self.set_access_token(access_token)

    def reset(self) -> None:
        """Clear the session. Calling it repeatedly is harmless."""
        with self._lock:
            self._current_token = None
            self._request_token = None
            self._verifier = None

    def __repr__(self) -> str:
        return f"OAuthSession(state={self.state.value})"


class OAuthRequest:
    """
    One outbound request before it is signed and handed to the transport.

    Built for a single call: nonce and timestamp differ every time, so an
    instance must never be reused.
    """

    def __init__(self, verb: RestVerb | str, url: str, realm: str | None = None):
        self.verb = RestVerb(verb)
        self.url = url
        self.realm = realm
        self.oauth_parameters: dict[str, str] = {}
        self.querystring_parameters: list[tuple[str, str]] = []
        self.body_parameters: list[tuple[str, str]] = []
        self.headers: dict[str, str] = {}
        self.payload: bytes | None = None

    def add_oauth_parameter(self, key: str, value: Any) -> None:
        if not (key.startswith("oauth_") or key == "scope"):
            raise ValueError(f"OAuth parameters must start with 'oauth_' or be 'scope': {key}")
        self.oauth_parameters[key] = str(value)

    def add_querystring_parameter(self, key: str, value: Any) -> None:
        self.querystring_parameters.append((key, str(value)))

    def add_body_parameter(self, key: str, value: Any) -> None:
        self.body_parameters.append((key, str(value)))

    def add_parameters(self, params: dict[str, Any] | None) -> None:
        """Add caller parameters where the verb carries them (body or query)."""
        for key, value in (params or {}).items():
            if self.verb.has_body:
                self.add_body_parameter(key, value)
            else:
                self.add_querystring_parameter(key, value)

    def add_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def add_payload(self, payload: str | bytes, content_type: str) -> None:
        """Set a raw body. Raw payloads never take part in the signature."""
        self.payload = payload.encode("utf-8") if isinstance(payload, str) else payload
        self.add_header("Content-Type", content_type)

    @property
    def sanitized_url(self) -> str:
        """The URL without query string or fragment."""
        parts = urlsplit(self.url)
        return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

    @property
    def query_parameters(self) -> list[tuple[str, str]]:
        """Parameters already in the URL plus the added query parameters."""
        in_url = parse_qsl(urlsplit(self.url).query, keep_blank_values=True)
        return in_url + list(self.querystring_parameters)

    @property
    def complete_url(self) -> str:
        """The URL with every added query parameter appended."""
        parts = urlsplit(self.url)
        if not self.querystring_parameters:
            return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))
        added = "&".join(
            f"{percent_encode(k)}={percent_encode(v)}"
            for k, v in self.querystring_parameters
        )
        query = f"{parts.query}&{added}" if parts.query else added
        return urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))

    def __repr__(self) -> str:
        return f"OAuthRequest({self.verb.value} {self.sanitized_url})"


class RestResponse(BaseModel):
    """
    Raw result of a REST call.

    The engine never interprets it beyond the status code and the body of
    token responses.
    """

    status_code: int = Field(description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: bytes = Field(default=b"", description="Raw response body")
    url: str | None = Field(default=None, description="Final request URL")

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300
