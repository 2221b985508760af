import logging
import secrets
from re import split
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, unquote, urlparse

from . import utils
from .hotp import HOTP as HOTP
from .otp import DEFAULT_DIGITS, DEFAULT_SECRET_LENGTH, MAX_DIGITS
from .otp import OTP as OTP
from .totp import DEFAULT_INTERVAL
from .totp import TOTP as TOTP
from .utils import Timestamp, UriParams

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def random_secret(length: int = DEFAULT_SECRET_LENGTH) -> bytes:
    """
    Returns ``length`` bytes from the operating system's CSPRNG.

    The result is raw bytes; use :func:`random_base32` or
    :func:`pytotp.utils.base32_encode` for something a user can type.
    """
    if length < 1:
        raise ValueError("secret length must be at least 1 byte")
    return secrets.token_bytes(length)


def random_base32(length: int = DEFAULT_SECRET_LENGTH) -> str:
    return utils.base32_encode(random_secret(length))


def hotp_code(secret: bytes, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    return HOTP(secret, digits=digits).at(counter)


def verification_code(
    secret: bytes,
    time: Optional[Timestamp] = None,
    interval: int = DEFAULT_INTERVAL,
    digits: int = DEFAULT_DIGITS,
) -> str:
    """
    Returns the TOTP code of ``secret`` for ``time`` (defaults to now).

    >>> verification_code(utils.base32_decode("BKFCZBQPZOXNTER5HKHGPHPGCXBNBDNC"), time=1586369351)
    '005357'
    """
    return TOTP(secret, digits=digits, interval=interval).at(utils.to_unix(time))


def is_valid(
    secret: bytes,
    otp: str,
    time: Optional[Timestamp] = None,
    since: Optional[Timestamp] = None,
    interval: int = DEFAULT_INTERVAL,
    digits: int = DEFAULT_DIGITS,
) -> bool:
    """
    Checks a user supplied code, see :meth:`TOTP.verify`.

    :param since: time the last code was accepted for this secret, so that
        a code is never accepted twice within the same time window
    """
    return TOTP(secret, digits=digits, interval=interval).verify(otp, for_time=time, since=since)


def otpauth_uri(label: str, secret: bytes, params: Optional[UriParams] = None) -> str:
    """
    Returns an ``otpauth://totp`` URI for authenticator apps.

    >>> otpauth_uri("Acme:alice@example.com", b"hello", {"issuer": "Acme"})
    'otpauth://totp/Acme:alice@example.com?secret=NBSWY3DP&issuer=Acme'
    """
    return utils.build_uri(secret, label, params)


def parse_uri(uri: str) -> OTP:
    """
    Parses the provisioning URI for the OTP; works for either TOTP or HOTP.

    See also:
        https://github.com/google/google-authenticator/wiki/Key-Uri-Format

    :param uri: the hotp/totp URI to parse
    :returns: OTP object
    """

    # Secret (to be filled in later)
    secret = None

    # Data we'll parse to the correct constructor
    otp_data: Dict[str, Any] = {}

    # Parse with URLlib
    parsed_uri = urlparse(uri)

    if parsed_uri.scheme != "otpauth":
        raise ValueError("Not an otpauth URI")

    # Parse issuer/accountname info, parse_qsl decodes the query itself
    accountinfo_parts = split(":", unquote(parsed_uri.path[1:]), maxsplit=1)
    if len(accountinfo_parts) == 1:
        otp_data["name"] = accountinfo_parts[0]
    else:
        otp_data["issuer"] = accountinfo_parts[0]
        otp_data["name"] = accountinfo_parts[1]

    # Parse values
    for key, value in parse_qsl(parsed_uri.query):
        if key == "secret":
            secret = value
        elif key == "issuer":
            if "issuer" in otp_data and otp_data["issuer"] is not None and otp_data["issuer"] != value:
                raise ValueError("If issuer is specified in both label and parameters, it should be equal.")
            otp_data["issuer"] = value
        elif key == "algorithm":
            if value.upper() != "SHA1":
                raise ValueError("Invalid value for algorithm, only SHA1 is supported")
        elif key == "digits":
            digits = int(value)
            if not 1 <= digits <= MAX_DIGITS:
                raise ValueError("Digits must be between 1 and {}".format(MAX_DIGITS))
            otp_data["digits"] = digits
        elif key == "period":
            otp_data["interval"] = int(value)
        elif key == "counter":
            initial_count = int(value)
            if initial_count < 0:
                raise ValueError("Counter must not be negative")
            otp_data["initial_count"] = initial_count

    if not secret:
        raise ValueError("No secret found in URI")

    logger.debug("Parsed otpauth URI of type %s", parsed_uri.netloc)
    if parsed_uri.netloc == "totp":
        otp_data.pop("initial_count", None)
        return TOTP(utils.base32_decode(secret), **otp_data)
    elif parsed_uri.netloc == "hotp":
        otp_data.pop("interval", None)
        return HOTP(utils.base32_decode(secret), **otp_data)

    raise ValueError("Not a supported OTP type")
