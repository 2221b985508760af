import hashlib
import hmac
from typing import Optional

from . import utils

DEFAULT_DIGITS = 6
MAX_DIGITS = 10
DEFAULT_SECRET_LENGTH = 20


class OTP(object):
    """
    Base class for OTP handlers.
    """

    def __init__(
        self,
        secret: bytes,
        digits: int = DEFAULT_DIGITS,
        name: Optional[str] = None,
        issuer: Optional[str] = None,
    ) -> None:
        """
        :param secret: raw shared secret
        :param digits: number of integers in the OTP. Some apps expect this to be 6 digits, others support more.
        :param name: account name
        :param issuer: issuer
        """
        if not isinstance(secret, (bytes, bytearray, memoryview)):
            raise TypeError("secret must be bytes, use utils.base32_decode for base32 text")
        if len(secret) == 0:
            raise ValueError("secret must not be empty")
        if isinstance(digits, bool) or not isinstance(digits, int):
            raise TypeError("digits must be an integer")
        if digits < 1:
            raise ValueError("digits must be at least 1")
        if digits > MAX_DIGITS:
            raise ValueError("digits must be no greater than {}".format(MAX_DIGITS))
        self.digits = digits
        self._secret = bytes(secret)
        self.name = name or "Secret"
        self.issuer = issuer

    def __repr__(self) -> str:
        # the secret is left out on purpose
        return "<{0} name={1!r} issuer={2!r} digits={3}>".format(
            type(self).__name__, self.name, self.issuer, self.digits
        )

    @property
    def secret(self) -> str:
        """The secret as unpadded base32 text."""
        return utils.base32_encode(self._secret)

    def byte_secret(self) -> bytes:
        return self._secret

    def generate_otp(self, input: int) -> str:
        """
        :param input: the HMAC counter value to use as the OTP input.
            Usually either the counter, or the computed integer based on the Unix timestamp
        """
        # Implements RFC 4226
        if input < 0:
            raise ValueError("input must be positive integer")
        hmac_hash = bytearray(hmac.new(self._secret, self.int_to_bytestring(input), hashlib.sha1).digest())
        offset = hmac_hash[-1] & 0xF
        code = (
            (hmac_hash[offset] & 0x7F) << 24
            | (hmac_hash[offset + 1] & 0xFF) << 16
            | (hmac_hash[offset + 2] & 0xFF) << 8
            | (hmac_hash[offset + 3] & 0xFF)
        )
        str_code = str(10_000_000_000 + (code % 10**self.digits))
        return str_code[-self.digits :]

    @staticmethod
    def int_to_bytestring(i: int, padding: int = 8) -> bytes:
        """
        Turns an integer to the OATH specified
        bytestring, which is fed to the HMAC
        along with the secret
        """
        result = bytearray()
        while i != 0:
            result.append(i & 0xFF)
            i >>= 8
        return bytes(bytearray(reversed(result)).rjust(padding, b"\0"))
