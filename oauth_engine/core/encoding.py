"""
RFC 3986 percent encoding as required by OAuth 1.0a (RFC 5849, section 3.6).
"""

from authlib.oauth1.rfc5849.util import escape


def percent_encode(value: object) -> str:
    """Percent-encode a value using its UTF-8 representation; None is ""."""
    if value is None:
        return ""
    if not isinstance(value, bytes):
        value = str(value)
    return escape(value)
