"""
Extractor pipeline: pure functions between raw provider data and the
structured values used for signing.

- OAuth10aTokenExtractor: form-encoded token response -> Token
- BaseStringExtractor: OAuthRequest -> signature base string
- HeaderExtractor: OAuthRequest -> Authorization header value
- parse_callback_verifier: callback URL or query string -> verifier
"""

import logging
from urllib.parse import parse_qsl, urlsplit

from authlib.oauth1.rfc5849.parameters import prepare_headers
from authlib.oauth1.rfc5849.signature import normalize_base_string_uri, normalize_parameters
from authlib.oauth1.rfc5849.util import escape

from oauth_engine.core.domain import OAuthRequest, Token
from oauth_engine.core.exceptions import (
    MalformedTokenResponseError,
    OAuthParametersMissingError,
    VerifierRequiredError,
)


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_PARAM = "oauth_token"
DEFAULT_TOKEN_SECRET_PARAM = "oauth_token_secret"
DEFAULT_VERIFIER_PARAM = "oauth_verifier"

# Never part of the signature base string (RFC 5849, 3.4.1.3.1).
_EXCLUDED_FROM_BASE_STRING = ("oauth_signature", "realm")


def _parse_form(body: str) -> dict[str, str]:
    """Parse a form-encoded body, first value wins for repeated keys."""
    values: dict[str, str] = {}
    for name, value in parse_qsl(body.strip(), keep_blank_values=True):
        values.setdefault(name, value)
    return values


class OAuth10aTokenExtractor:
    """
    Extracts request and access tokens from form-encoded responses.

    Example body: oauth_token=K&oauth_token_secret=S&oauth_callback_confirmed=true
    """

    def __init__(
        self,
        token_param: str = DEFAULT_TOKEN_PARAM,
        secret_param: str = DEFAULT_TOKEN_SECRET_PARAM,
    ):
        self.token_param = token_param
        self.secret_param = secret_param

    def extract(self, response: str) -> Token:
        """
        Parse a token response body.

        Args:
            response: Raw body returned by the token endpoint

        Returns:
            Token holding the decoded key and secret, plus the raw body

        Raises:
            MalformedTokenResponseError: If the body is empty or lacks a field
        """
        if not response or not response.strip():
            raise MalformedTokenResponseError(
                "Response body is empty, cannot extract a token"
            )

        values = _parse_form(response)
        missing = [
            name for name in (self.token_param, self.secret_param) if name not in values
        ]
        if missing:
            raise MalformedTokenResponseError(
                f"Token response lacks {', '.join(missing)}"
            )
        if not values[self.token_param]:
            raise MalformedTokenResponseError(
                f"Token response has an empty {self.token_param}"
            )

        return Token.from_pair(
            values[self.token_param], values[self.secret_param], raw_response=response
        )


def normalize_url(url: str) -> str:
    """
    Base string URI: lowercase scheme and host, no default port, no query.
    """
    try:
        return normalize_base_string_uri(url)
    except ValueError as e:
        raise ValueError(f"Cannot sign a request to a relative URL: {url}") from e


def _require_oauth_parameters(request: OAuthRequest) -> None:
    if not request.oauth_parameters:
        raise OAuthParametersMissingError(
            f"No OAuth parameters on {request!r}, it cannot be signed"
        )


class BaseStringExtractor:
    """
    Builds the OAuth 1.0a signature base string.

    VERB&encode(normalized URL)&encode(normalized parameters), where the
    parameters are the oauth_* set, the query string and form body
    parameters. The output only depends on the logical content of the
    request, never on insertion order.
    """

    def extract(self, request: OAuthRequest) -> str:
        _require_oauth_parameters(request)

        params = [
            (k, v)
            for k, v in request.oauth_parameters.items()
            if k not in _EXCLUDED_FROM_BASE_STRING
        ]
        params += request.query_parameters
        params += request.body_parameters

        # construct_base_string would unescape oauth_* values, ours are raw.
        return "&".join(
            [
                escape(request.verb.value),
                escape(normalize_url(request.url)),
                escape(normalize_parameters(params)),
            ]
        )


class HeaderExtractor:
    """Renders the OAuth parameters as an Authorization header value."""

    def extract(self, request: OAuthRequest) -> str:
        _require_oauth_parameters(request)
        params = sorted(request.oauth_parameters.items())
        header = prepare_headers(params, realm=request.realm)["Authorization"]

        # prepare_headers only renders oauth_* names; scope sorts after them.
        extra = [f'{escape(k)}="{escape(v)}"' for k, v in params if not k.startswith("oauth_")]
        if extra:
            header = ", ".join([header, *extra])
        return header


def parse_callback_verifier(
    callback: str, param_name: str = DEFAULT_VERIFIER_PARAM
) -> str:
    """
    Read the verifier from the provider callback.

    Args:
        callback: Full callback URL or its query string
        param_name: Name of the verifier query parameter

    Returns:
        The verifier string

    Raises:
        VerifierRequiredError: If the parameter is missing or empty
    """
    query = urlsplit(callback).query if "://" in callback else callback.lstrip("?")
    values = dict(parse_qsl(query, keep_blank_values=True))
    verifier = values.get(param_name)
    if not verifier:
        logger.warning(f"Callback does not carry a '{param_name}' parameter")
        raise VerifierRequiredError(f"Callback lacks the '{param_name}' parameter")
    return verifier
