"""
Run an OAuth 1.0a handshake from the terminal and call a protected resource.

Provider endpoints and consumer credentials come from the environment (or a
.env file), see oauth_engine.config.OAuthAppSettings.

    python scripts/oauth_handshake.py https://api.example.com/me
"""

import argparse
import asyncio

from dotenv import load_dotenv

from oauth_engine.config import get_app_settings
from oauth_engine.core.domain import RestVerb
from oauth_engine.core.exceptions import OAuthError
from oauth_engine.core.oauth_service import OAuth10aService
from oauth_engine.infrastructure.httpx_transport import HttpxTransport
from oauth_engine.logging_config import setup_global_logging
from oauth_engine.providers.config import build_provider_config

# Load environment variables from .env file
load_dotenv()


async def run(resource_url: str | None, access_key: str | None, access_secret: str | None):
    settings = get_app_settings()
    service = OAuth10aService(build_provider_config(settings), settings, HttpxTransport())

    if access_key:
        service.set_access_token(access_key, access_secret or "")
    else:
        print(f"Point your browser to: {await service.get_authorization_url()}")
        callback = input(
            f"Paste the callback URL or the {service.verifier_param_name} value: "
        ).strip()
        if "=" in callback:
            service.set_verifier_from_callback(callback)
        else:
            service.set_verifier(callback)

        token = await service.init_access_token()
        print(f"Access token: {token.key}")
        print(f"Access token secret: {token.secret}")

    if resource_url:
        response = await service.send_signed_request(RestVerb.GET, resource_url)
        print(f"{response.status_code} {response.text}")


def main():
    parser = argparse.ArgumentParser(description="OAuth 1.0a handshake helper.")
    parser.add_argument("resource_url", nargs="?", help="Protected resource to GET.")
    parser.add_argument("--access-key", help="Reuse an access token instead of authorizing.")
    parser.add_argument("--access-secret", help="Secret of the reused access token.")
    parser.add_argument("--log-level", default=None, help="Log level (default INFO).")
    args = parser.parse_args()

    setup_global_logging(args.log_level)

    try:
        asyncio.run(run(args.resource_url, args.access_key, args.access_secret))
    except (OAuthError, ValueError) as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
