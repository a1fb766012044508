"""
Timestamp and nonce generation for replay protection.
"""

import secrets
import time
from typing import Callable


class SystemTimestampService:
    """
    Wall clock timestamps and random nonces.

    Nonces carry 128 bits from the secrets module. Issued nonces are not
    tracked; uniqueness is probabilistic.
    """

    NONCE_BYTES = 16

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def get_timestamp_in_seconds(self) -> str:
        """Unix time in whole seconds, as sent in oauth_timestamp."""
        return str(int(self._clock()))

    def get_nonce(self) -> str:
        return secrets.token_urlsafe(self.NONCE_BYTES)
