"""
Core service orchestrating the OAuth 1.0a flow and signed requests.

    service = OAuth10aService(provider_config, settings, HttpxTransport())
    url = await service.get_authorization_url()      # user authorizes at url
    service.set_verifier(verifier)                   # from the callback
    await service.init_access_token()
    response = await service.send_signed_request(RestVerb.GET, "https://api.example.com/me")

HTTP is delegated to the RestTransport; nothing is retried.
"""

import logging
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from oauth_engine.config import OAuthAppSettings
from oauth_engine.core.domain import (
    OAuthRequest,
    OAuthSession,
    RestResponse,
    RestVerb,
    SessionState,
    SignaturePlace,
    Token,
)
from oauth_engine.core.encoding import percent_encode
from oauth_engine.core.exceptions import (
    NoAccessTokenError,
    ProviderUnreachableError,
    RequestTokenMissingError,
    ResponseDecodingError,
    TokenExchangeFailedError,
    TransportError,
    VerifierRequiredError,
)
from oauth_engine.core.extractors import parse_callback_verifier
from oauth_engine.core.ports import RestTransport
from oauth_engine.providers.config import ProviderConfig


logger = logging.getLogger(__name__)

T = TypeVar("T")


class OAuth10aService:
    """
    OAuth 1.0a service for one provider and one authenticated identity.

    The session is the only mutable state. Share an instance between
    concurrent callers only if they act for the same identity.
    """

    def __init__(
        self,
        config: ProviderConfig,
        settings: OAuthAppSettings,
        transport: RestTransport,
        session: OAuthSession | None = None,
    ):
        settings.validate()
        self._config = config
        self._settings = settings
        self._transport = transport
        self._session = session if session is not None else OAuthSession()

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def session(self) -> OAuthSession:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def access_token(self) -> Token | None:
        return self._session.current_token

    @property
    def verifier(self) -> str | None:
        return self._session.verifier

    @property
    def verifier_param_name(self) -> str:
        """Query parameter carrying the verifier in the provider callback."""
        return self._config.verifier_param_name

    def _log_context(self) -> dict[str, Any]:
        return {"extra_fields": {"provider": self._config.name, "state": self.state.value}}

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    async def get_request_token(self) -> Token:
        """
        Obtain a request token and store it in the session.

        Returns:
            The request token

        Raises:
            ProviderUnreachableError: If the transport fails
            TokenExchangeFailedError: If the provider answers with an error status
            MalformedTokenResponseError: If the response carries no token
        """
        request = OAuthRequest(
            self._config.request_token_verb, self._config.request_token_endpoint
        )
        request.add_oauth_parameter("oauth_callback", self._settings.callback)
        if self._settings.scope:
            request.add_oauth_parameter("scope", self._settings.scope)
        self.sign_request(request)

        response = await self._send_token_request(request, "request token")
        token = self._config.request_token_extractor.extract(response.text)

        self._session.set_request_token(token)
        logger.info(
            f"Obtained request token from '{self._config.name}'", extra=self._log_context()
        )
        return token

    async def get_authorization_url(self) -> str:
        """
        URL where the user authorizes this application.

        A request token is fetched first when the session holds none.
        """
        request_token = self._session.request_token
        if request_token is None:
            request_token = await self.get_request_token()
        return self._config.get_authorization_url(request_token)

    def set_verifier(self, verifier: str) -> None:
        """Store the verifier. The provider checks it during the exchange."""
        self._session.set_verifier(verifier)

    def set_verifier_from_callback(self, callback: str) -> str:
        """
        Read the verifier from the provider callback URL and store it.

        Raises:
            VerifierRequiredError: If the callback carries no verifier
        """
        verifier = parse_callback_verifier(callback, self.verifier_param_name)
        self.set_verifier(verifier)
        return verifier

    async def init_access_token(self) -> Token:
        """
        Exchange the request token and verifier for an access token.

        The session is only updated when the exchange succeeds and still
        holds the request token that was exchanged.

        Returns:
            The access token, now held by the session

        Raises:
            VerifierRequiredError: If no verifier was set
            RequestTokenMissingError: If no request token is held, or it was
                discarded while the exchange ran
            ProviderUnreachableError: If the transport fails
            TokenExchangeFailedError: If the provider rejects the exchange
            MalformedTokenResponseError: If the response carries no token
        """
        snapshot = self._session.snapshot()
        if not snapshot.verifier:
            raise VerifierRequiredError(
                "Set the verifier returned by the provider before the exchange"
            )
        if snapshot.request_token is None:
            raise RequestTokenMissingError(
                "No request token in session, get the authorization URL first"
            )

        request = OAuthRequest(
            self._config.access_token_verb, self._config.access_token_endpoint
        )
        request.add_oauth_parameter("oauth_verifier", snapshot.verifier)
        self.sign_request(request, snapshot.request_token)

        response = await self._send_token_request(request, "access token")
        token = self._config.access_token_extractor.extract(response.text)

        try:
            self._session.complete_exchange(snapshot.request_token, token)
        except RequestTokenMissingError:
            logger.warning(
                f"Session for '{self._config.name}' was reset during the exchange",
                extra=self._log_context(),
            )
            raise
        logger.info(
            f"Obtained access token from '{self._config.name}'", extra=self._log_context()
        )
        return token

    def set_access_token(self, token: Token | str, secret: str | None = None) -> None:
        """
        Restore a previously obtained access token.

        Accepts a Token or its key and secret. Skips the handshake entirely.

        Raises:
            InvalidTokenError: If the key is empty (session left unchanged)
        """
        if not isinstance(token, Token):
            token = Token.from_pair(token, secret)
        self._session.set_access_token(token)
        logger.info(
            f"Access token restored for '{self._config.name}'", extra=self._log_context()
        )

    def reset_session(self) -> None:
        """Forget every token and the verifier."""
        self._session.reset()
        logger.info(f"Session reset for '{self._config.name}'", extra=self._log_context())

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def sign_request(self, request: OAuthRequest, token: Token | None = None) -> None:
        """
        Add the OAuth parameters and signature to a request.

        Args:
            request: Request to sign, never signed before
            token: Request or access token; None for the request token step
        """
        config = self._config
        timestamps = config.timestamp_service

        request.add_oauth_parameter("oauth_timestamp", timestamps.get_timestamp_in_seconds())
        request.add_oauth_parameter("oauth_nonce", timestamps.get_nonce())
        request.add_oauth_parameter("oauth_consumer_key", self._settings.consumer_key)
        request.add_oauth_parameter(
            "oauth_signature_method", config.signature_service.signature_method
        )
        request.add_oauth_parameter("oauth_version", config.version.value)
        if token is not None:
            request.add_oauth_parameter("oauth_token", token.key)

        base_string = config.base_string_extractor.extract(request)
        signature = config.signature_service.get_signature(
            base_string,
            self._settings.consumer_secret,
            token.secret if token is not None else "",
        )
        request.add_oauth_parameter("oauth_signature", signature)
        self._attach_signature(request)
        logger.debug(f"Signed {request!r}")

    def _attach_signature(self, request: OAuthRequest) -> None:
        if self._config.signature_place is SignaturePlace.HEADER:
            request.add_header("Authorization", self._config.header_extractor.extract(request))
        else:
            for key, value in sorted(request.oauth_parameters.items()):
                request.add_querystring_parameter(key, value)

    # ------------------------------------------------------------------
    # Signed requests
    # ------------------------------------------------------------------

    async def send_signed(self, request: OAuthRequest) -> RestResponse:
        """
        Sign a prebuilt request with the access token and send it.

        Raises:
            NoAccessTokenError: If no access token is held
            TransportError: Transport failures, unchanged
        """
        token = self._session.current_token
        if token is None:
            raise NoAccessTokenError(
                "No access token, complete the authorization or restore a token first"
            )
        self.sign_request(request, token)
        return await self._send(request)

    async def send_signed_request(
        self, verb: RestVerb | str, uri: str, params: dict[str, Any] | None = None
    ) -> RestResponse:
        """
        Send a signed request.

        Args:
            verb: HTTP verb
            uri: Target URI, may already hold a query string
            params: Parameters, sent as form body for POST/PUT/PATCH and as
                query string otherwise. Both are covered by the signature.

        Returns:
            The transport response, unmodified
        """
        request = OAuthRequest(verb, uri)
        request.add_parameters(params)
        return await self.send_signed(request)

    async def send_signed_xml_request(
        self, verb: RestVerb | str, uri: str, payload: str
    ) -> RestResponse:
        """Send a signed request with an XML body (not covered by the signature)."""
        request = OAuthRequest(verb, uri)
        request.add_payload(payload, "text/xml")
        return await self.send_signed(request)

    async def get(self, uri: str, response_type: type[T], signed: bool = True, *args) -> T:
        """
        GET a resource and decode its JSON body.

        Args:
            uri: URI with optional positional placeholders ({0}, {1}...)
            response_type: Type to decode into (pydantic model, dict, list[...])
            signed: Sign the request with the access token
            *args: Values for the placeholders, percent-encoded

        Returns:
            The decoded body

        Raises:
            ResponseDecodingError: On error status or undecodable body
        """
        if args:
            uri = uri.format(*(percent_encode(arg) for arg in args))

        if signed:
            response = await self.send_signed_request(RestVerb.GET, uri)
        else:
            response = await self._send(OAuthRequest(RestVerb.GET, uri))

        if not response.is_success:
            raise ResponseDecodingError(
                f"GET {uri} returned status {response.status_code}, nothing to decode"
            )

        try:
            return TypeAdapter(response_type).validate_json(response.body)
        except ValidationError as e:
            logger.error(f"Failed to decode response from {uri}: {e}")
            raise ResponseDecodingError(
                f"Cannot decode response from {uri} as {response_type!r}: {e}"
            ) from e

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _send(self, request: OAuthRequest) -> RestResponse:
        return await self._transport.send(
            request.verb,
            request.complete_url,
            dict(request.headers),
            list(request.body_parameters),
            request.payload,
        )

    async def _send_token_request(self, request: OAuthRequest, step: str) -> RestResponse:
        try:
            response = await self._send(request)
        except TransportError as e:
            logger.error(
                f"Could not reach {request.sanitized_url} for the {step}: {e}",
                extra=self._log_context(),
            )
            raise ProviderUnreachableError(
                f"Could not reach {request.sanitized_url} for the {step}: {e}"
            ) from e

        if not response.is_success:
            logger.error(
                f"Provider rejected the {step} request: {response.status_code} {response.text}",
                extra=self._log_context(),
            )
            raise TokenExchangeFailedError(
                f"Provider rejected the {step} request with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response
