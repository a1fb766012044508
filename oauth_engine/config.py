"""
OAuth application settings.

The consumer key/secret registered with the provider, the callback URL and,
for generic providers, the three OAuth 1.0a endpoints. Loaded from
environment variables.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


# Out-of-band callback: the provider shows the verifier to the user.
OUT_OF_BAND_CALLBACK = "oob"


@dataclass
class OAuthAppSettings:
    """
    Application (consumer) settings.

    Required environment variables:
    - OAUTH_CONSUMER_KEY
    - OAUTH_CONSUMER_SECRET

    Optional:
    - OAUTH_CALLBACK_URL (defaults to "oob")
    - OAUTH_SCOPE
    - OAUTH_PROVIDER_NAME
    - OAUTH_REQUEST_TOKEN_URL, OAUTH_ACCESS_TOKEN_URL, OAUTH_AUTHORIZE_URL
    - OAUTH_SIGNATURE_METHOD (HMAC-SHA1, PLAINTEXT or RSA-SHA1)
    - OAUTH_SIGNATURE_PLACE (header or query_string)
    - OAUTH_RSA_PRIVATE_KEY_FILE (PEM file, RSA-SHA1 only)
    """

    consumer_key: str | None
    consumer_secret: str | None
    callback: str = OUT_OF_BAND_CALLBACK
    scope: str | None = None

    provider_name: str = "oauth10a"
    request_token_url: str | None = None
    access_token_url: str | None = None
    authorize_url: str | None = None
    signature_type: str = "HMAC-SHA1"
    signature_place: str = "header"
    rsa_private_key: bytes | None = None

    @classmethod
    def from_env(cls) -> "OAuthAppSettings":
        """Load settings from environment variables."""
        rsa_private_key = None
        key_file = os.getenv("OAUTH_RSA_PRIVATE_KEY_FILE")
        if key_file:
            with open(key_file, "rb") as f:
                rsa_private_key = f.read()

        return cls(
            consumer_key=os.getenv("OAUTH_CONSUMER_KEY"),
            consumer_secret=os.getenv("OAUTH_CONSUMER_SECRET"),
            callback=os.getenv("OAUTH_CALLBACK_URL") or OUT_OF_BAND_CALLBACK,
            scope=os.getenv("OAUTH_SCOPE"),
            provider_name=os.getenv("OAUTH_PROVIDER_NAME", "oauth10a"),
            request_token_url=os.getenv("OAUTH_REQUEST_TOKEN_URL"),
            access_token_url=os.getenv("OAUTH_ACCESS_TOKEN_URL"),
            authorize_url=os.getenv("OAUTH_AUTHORIZE_URL"),
            signature_type=os.getenv("OAUTH_SIGNATURE_METHOD", "HMAC-SHA1"),
            signature_place=os.getenv("OAUTH_SIGNATURE_PLACE", "header"),
            rsa_private_key=rsa_private_key,
        )

    def is_provider_configured(self) -> bool:
        """Check that all three provider endpoints are known."""
        return bool(self.request_token_url and self.access_token_url and self.authorize_url)

    def validate(self) -> None:
        """Validate required settings. Call at startup to fail fast."""
        if not self.consumer_key:
            raise ValueError("OAUTH_CONSUMER_KEY environment variable is required")
        if self.consumer_secret is None:
            raise ValueError("OAUTH_CONSUMER_SECRET environment variable is required")


@lru_cache()
def get_app_settings() -> OAuthAppSettings:
    """Get application settings singleton."""
    return OAuthAppSettings.from_env()
