"""
REST transport built on httpx.

Implements the RestTransport port. HTTP error statuses are returned as
regular responses; only network failures raise.
"""

import logging

import httpx

from oauth_engine.core.domain import RestResponse, RestVerb
from oauth_engine.core.exceptions import TransportError


logger = logging.getLogger(__name__)


class HttpxTransport:
    """
    Async HTTP transport.

    A client may be passed in to share connection pools; otherwise a
    short-lived client is opened for each request.
    """

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self._timeout = timeout
        self._client = client

    async def send(
        self,
        verb: RestVerb,
        uri: str,
        headers: dict[str, str],
        params: list[tuple[str, str]],
        content: bytes | None = None,
    ) -> RestResponse:
        """
        Send one request.

        Raises:
            TransportError: On connection errors and timeouts
        """
        verb = RestVerb(verb)
        kwargs: dict = {"headers": headers}
        if content is not None:
            kwargs["content"] = content
        elif params:
            data: dict[str, list[str]] = {}
            for key, value in params:
                data.setdefault(key, []).append(value)
            kwargs["data"] = data

        try:
            if self._client is not None:
                response = await self._client.request(verb.value, uri, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(verb.value, uri, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling {verb.value} {uri}: {e}")
            raise TransportError(f"Timeout calling {verb.value} {uri}: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"Network error calling {verb.value} {uri}: {e}")
            raise TransportError(f"Network error calling {verb.value} {uri}: {e}") from e

        logger.debug(f"{verb.value} {uri} -> {response.status_code}")
        return RestResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
            url=str(response.url),
        )
