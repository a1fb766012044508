"""
Signature services for OAuth 1.0a (RFC 5849, section 3.4).

All services are stateless and safe to share between concurrent requests.
The configured SignatureType selects one of them; the base string logic
does not depend on which.
"""

from authlib.oauth1.rfc5849.signature import (
    hmac_sha1_signature,
    plaintext_signature,
    rsa_sha1_signature,
)
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from oauth_engine.core.domain import SignatureType


class HmacSha1SignatureService:
    """HMAC-SHA1 over the base string, base64-encoded."""

    signature_method = SignatureType.HMACSHA1.value

    def get_signature(
        self, base_string: str, consumer_secret: str, token_secret: str
    ) -> str:
        """
        Compute oauth_signature.

        The key is encode(consumer secret) & encode(token secret), with the
        '&' kept when either secret is empty.

        Args:
            base_string: Signature base string of the request
            consumer_secret: Application secret
            token_secret: Secret of the request or access token ("" if none)

        Returns:
            Base64 encoded HMAC-SHA1 digest

        Raises:
            ValueError: If the base string or consumer secret is missing
        """
        if not base_string:
            raise ValueError("Base string must not be empty")
        if consumer_secret is None:
            raise ValueError("Consumer secret must not be None")
        return hmac_sha1_signature(base_string, consumer_secret, token_secret)


class PlaintextSignatureService:
    """PLAINTEXT: the signature is the signing key itself. Only safe over TLS."""

    signature_method = SignatureType.PLAINTEXT.value

    def get_signature(
        self, base_string: str, consumer_secret: str, token_secret: str
    ) -> str:
        if consumer_secret is None:
            raise ValueError("Consumer secret must not be None")
        return plaintext_signature(consumer_secret, token_secret)


class RsaSha1SignatureService:
    """
    RSA-SHA1: PKCS#1 v1.5 signature of the base string.

    The provider verifies with the public key registered for the consumer,
    so consumer and token secrets are not used.
    """

    signature_method = SignatureType.RSASHA1.value

    def __init__(self, private_key: rsa.RSAPrivateKey):
        # authlib signs from unencrypted PEM
        self._pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    @classmethod
    def from_pem(
        cls, pem: str | bytes, password: bytes | None = None
    ) -> "RsaSha1SignatureService":
        """Load the consumer private key from PEM data."""
        data = pem.encode("utf-8") if isinstance(pem, str) else pem
        key = serialization.load_pem_private_key(data, password=password)
        if not isinstance(key, rsa.RSAPrivateKey):
            raise ValueError("RSA-SHA1 requires an RSA private key")
        return cls(key)

    def get_signature(
        self, base_string: str, consumer_secret: str, token_secret: str
    ) -> str:
        if not base_string:
            raise ValueError("Base string must not be empty")
        return rsa_sha1_signature(base_string, self._pem)


def signature_service_for(
    signature_type: SignatureType | str,
    private_key: rsa.RSAPrivateKey | str | bytes | None = None,
):
    """
    Build the signature service for a signature type.

    Args:
        signature_type: Algorithm to use
        private_key: RSA key object or PEM data, required for RSA-SHA1

    Returns:
        A SignatureService implementation
    """
    signature_type = SignatureType(signature_type)
    if signature_type is SignatureType.HMACSHA1:
        return HmacSha1SignatureService()
    if signature_type is SignatureType.PLAINTEXT:
        return PlaintextSignatureService()

    if private_key is None:
        raise ValueError("RSA-SHA1 signatures need a private key")
    if isinstance(private_key, (str, bytes)):
        return RsaSha1SignatureService.from_pem(private_key)
    return RsaSha1SignatureService(private_key)
