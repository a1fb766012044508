"""
Shared test configuration and fixtures.
"""

import re
from dataclasses import dataclass, field
from urllib.parse import unquote

import pytest

from oauth_engine.config import OAuthAppSettings
from oauth_engine.core.domain import RestResponse, RestVerb
from oauth_engine.core.oauth_service import OAuth10aService
from oauth_engine.providers.config import ProviderConfig


REQUEST_TOKEN_URL = "https://api.example.com/oauth/request_token"
ACCESS_TOKEN_URL = "https://api.example.com/oauth/access_token"
AUTHORIZE_URL = "https://api.example.com/oauth/authorize?oauth_token={token}"


@dataclass
class SentRequest:
    """A request as received by the fake transport."""

    verb: RestVerb
    uri: str
    headers: dict[str, str]
    params: list[tuple[str, str]]
    content: bytes | None = None


@dataclass
class FakeTransport:
    """
    RestTransport double.

    Returns queued responses (or raises queued exceptions) in order and
    records every request it receives.
    """

    calls: list[SentRequest] = field(default_factory=list)
    queued: list = field(default_factory=list)

    def respond(self, status_code: int = 200, body: str | bytes = b"", headers=None):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.queued.append(
            RestResponse(status_code=status_code, body=body, headers=headers or {})
        )

    def fail(self, error: Exception):
        self.queued.append(error)

    async def send(self, verb, uri, headers, params, content=None):
        self.calls.append(SentRequest(verb, uri, headers, params, content))
        outcome = self.queued.pop(0) if self.queued else RestResponse(status_code=200)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FixedTimestampService:
    """Deterministic timestamp and nonce."""

    def __init__(self, timestamp: str = "1318622958", nonce: str = "kllo9940pd9333jh"):
        self.timestamp = timestamp
        self.nonce = nonce

    def get_timestamp_in_seconds(self) -> str:
        return self.timestamp

    def get_nonce(self) -> str:
        return self.nonce


def parse_authorization_header(value: str) -> dict[str, str]:
    """Decode an 'OAuth k="v", ...' header into a dict."""
    assert value.startswith("OAuth ")
    return {k: unquote(v) for k, v in re.findall(r'([\w%.~-]+)="([^"]*)"', value)}


@pytest.fixture
def settings():
    """Consumer settings with key CK and secret CS."""
    return OAuthAppSettings(consumer_key="CK", consumer_secret="CS")


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def provider_config():
    """Standard HMAC-SHA1 provider with a deterministic timestamp service."""
    return ProviderConfig.oauth10a(
        request_token_endpoint=REQUEST_TOKEN_URL,
        access_token_endpoint=ACCESS_TOKEN_URL,
        authorization_url=AUTHORIZE_URL,
        timestamp_service=FixedTimestampService(),
        name="example",
    )


@pytest.fixture
def service(provider_config, settings, transport):
    return OAuth10aService(provider_config, settings, transport)
