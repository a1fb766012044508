"""
Provider configuration for OAuth 1.0a services.

A ProviderConfig is the strategy object driving the signing pipeline: it
holds the extractors, the signature and timestamp services, the signature
placement and the token endpoints. The orchestrator never branches on the
provider identity, only on what the configuration exposes.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import urlsplit

from oauth_engine.config import OAuthAppSettings
from oauth_engine.core.domain import (
    OAuthVersion,
    RestVerb,
    SignaturePlace,
    SignatureType,
    Token,
)
from oauth_engine.core.encoding import percent_encode
from oauth_engine.core.extractors import (
    DEFAULT_VERIFIER_PARAM,
    BaseStringExtractor,
    HeaderExtractor,
    OAuth10aTokenExtractor,
)
from oauth_engine.core.ports import (
    SignatureService,
    StringExtractor,
    TimestampService,
    TokenExtractor,
)
from oauth_engine.core.signature import HmacSha1SignatureService, signature_service_for
from oauth_engine.core.timestamp import SystemTimestampService


logger = logging.getLogger(__name__)

AuthorizationUrlBuilder = Callable[[Token], str]


def authorization_url_template(template: str) -> AuthorizationUrlBuilder:
    """
    Build an authorization URL builder from a template.

    The request token key replaces "{token}". Without a placeholder the key
    is appended as the oauth_token query parameter.

    Example:
        authorization_url_template("https://api.example.com/oauth/authorize?oauth_token={token}")
    """
    if not template:
        raise ValueError("Authorization URL template must not be empty")

    def build(request_token: Token) -> str:
        encoded = percent_encode(request_token.key)
        if "{token}" in template:
            return template.replace("{token}", encoded)
        separator = "&" if urlsplit(template).query else "?"
        return f"{template}{separator}oauth_token={encoded}"

    return build


@dataclass(frozen=True)
class ProviderConfig:
    """
    OAuth 1.0a provider configuration.

    Resolved once per provider integration. Every collaborator is passed
    explicitly; the defaults implement standard OAuth 1.0a with HMAC-SHA1
    signatures in the Authorization header.
    """

    request_token_endpoint: str
    access_token_endpoint: str
    authorization_url: AuthorizationUrlBuilder
    name: str = "oauth10a"
    signature_place: SignaturePlace = SignaturePlace.HEADER
    version: OAuthVersion = OAuthVersion.ONE
    request_token_verb: RestVerb = RestVerb.POST
    access_token_verb: RestVerb = RestVerb.POST
    request_token_extractor: TokenExtractor = field(default_factory=OAuth10aTokenExtractor)
    access_token_extractor: TokenExtractor = field(default_factory=OAuth10aTokenExtractor)
    base_string_extractor: StringExtractor = field(default_factory=BaseStringExtractor)
    header_extractor: StringExtractor = field(default_factory=HeaderExtractor)
    signature_service: SignatureService = field(default_factory=HmacSha1SignatureService)
    timestamp_service: TimestampService = field(default_factory=SystemTimestampService)
    verifier_param_name: str = DEFAULT_VERIFIER_PARAM

    def __post_init__(self):
        if not self.request_token_endpoint:
            raise ValueError(f"{self.name}: request token endpoint is required")
        if not self.access_token_endpoint:
            raise ValueError(f"{self.name}: access token endpoint is required")
        if not callable(self.authorization_url):
            raise ValueError(f"{self.name}: an authorization URL builder is required")
        if not self.verifier_param_name:
            raise ValueError(f"{self.name}: verifier parameter name must not be empty")

        # Frozen dataclass: normalize plain strings into enums.
        object.__setattr__(self, "signature_place", SignaturePlace(self.signature_place))
        object.__setattr__(self, "version", OAuthVersion(self.version))
        object.__setattr__(self, "request_token_verb", RestVerb(self.request_token_verb))
        object.__setattr__(self, "access_token_verb", RestVerb(self.access_token_verb))

    @property
    def signature_type(self) -> SignatureType:
        """The signature capability of the configured service."""
        return SignatureType(self.signature_service.signature_method)

    def get_authorization_url(self, request_token: Token) -> str:
        """URL where the user authorizes the request token."""
        return self.authorization_url(request_token)

    @classmethod
    def oauth10a(
        cls,
        request_token_endpoint: str,
        access_token_endpoint: str,
        authorization_url: str | AuthorizationUrlBuilder,
        signature_type: SignatureType | str = SignatureType.HMACSHA1,
        private_key=None,
        **options,
    ) -> "ProviderConfig":
        """
        Build a configuration from endpoint URLs and a signature type.

        Args:
            request_token_endpoint: URL issuing request tokens
            access_token_endpoint: URL exchanging verifiers for access tokens
            authorization_url: Template string or builder for the user URL
            signature_type: Signature algorithm
            private_key: RSA key (object or PEM) for RSA-SHA1
            **options: Any other ProviderConfig field

        Returns:
            The provider configuration
        """
        if isinstance(authorization_url, str):
            authorization_url = authorization_url_template(authorization_url)

        return cls(
            request_token_endpoint=request_token_endpoint,
            access_token_endpoint=access_token_endpoint,
            authorization_url=authorization_url,
            signature_service=signature_service_for(signature_type, private_key),
            **options,
        )


def build_provider_config(settings: OAuthAppSettings) -> ProviderConfig:
    """
    Create the provider configuration described by application settings.

    Raises:
        ValueError: If the settings lack the provider endpoints
    """
    if not settings.is_provider_configured():
        raise ValueError(
            "Provider endpoints missing: set OAUTH_REQUEST_TOKEN_URL, "
            "OAUTH_ACCESS_TOKEN_URL and OAUTH_AUTHORIZE_URL"
        )

    config = ProviderConfig.oauth10a(
        request_token_endpoint=settings.request_token_url,
        access_token_endpoint=settings.access_token_url,
        authorization_url=settings.authorize_url,
        signature_type=settings.signature_type,
        private_key=settings.rsa_private_key,
        name=settings.provider_name,
        signature_place=settings.signature_place,
    )
    logger.info(
        f"Configured OAuth 1.0a provider '{config.name}' "
        f"({config.signature_type.value}, signature in {config.signature_place.value})"
    )
    return config
