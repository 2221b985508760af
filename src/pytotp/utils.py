import base64
import calendar
import datetime
import math
import time
from hmac import compare_digest
from typing import Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, urlencode, urlparse

Timestamp = Union[int, float, datetime.datetime]
UriParams = Union[Mapping[str, Union[str, int]], Iterable[Tuple[str, Union[str, int]]]]


def build_uri(
    secret: bytes,
    label: str,
    params: Optional[UriParams] = None,
    otp_type: str = "totp",
) -> str:
    """
    Returns the provisioning URI for the OTP; works for either TOTP or HOTP.

    This can then be encoded in a QR Code and used to provision the Google
    Authenticator app.

    See also:
        https://github.com/google/google-authenticator/wiki/Key-Uri-Format

    :param secret: the raw secret bytes, emitted as unpadded base32
    :param label: account label, optionally prefixed with ``Issuer:``
    :param params: other query string parameters to include in the URI,
        kept in the order given
    :param otp_type: ``totp`` or ``hotp``
    :returns: provisioning uri
    """
    base_uri = "otpauth://{0}/{1}?{2}"

    url_args: List[Tuple[str, Union[int, str]]] = [("secret", base32_encode(secret))]

    if params is None:
        params = ()
    elif isinstance(params, Mapping):
        params = params.items()

    # repeated keys are kept, each in its own position
    for k, v in params:
        if k == "secret":
            raise ValueError("secret must not be passed as an otpauth uri parameter")
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            raise ValueError("All otpauth uri parameters must be strings or integers")
        if k == "image":
            image_uri = urlparse(str(v))
            if image_uri.scheme != "https" or not image_uri.netloc or not image_uri.path:
                raise ValueError("{} is not a valid url".format(image_uri))
        url_args.append((k, v))

    # ":" separates issuer and account name, "@" is common in account names
    label = quote(label, safe=":@")

    return base_uri.format(otp_type, label, urlencode(url_args).replace("+", "%20"))


def base32_encode(secret: bytes) -> str:
    # The otpauth scheme does not use base32 padding.
    return base64.b32encode(secret).decode("ascii").rstrip("=")


def base32_decode(secret: str) -> bytes:
    missing_padding = len(secret) % 8
    if missing_padding != 0:
        secret += "=" * (8 - missing_padding)
    return base64.b32decode(secret, casefold=True)


def to_unix(value: Optional[Timestamp] = None) -> int:
    """
    Normalises a point in time to whole seconds since the epoch.

    ``None`` reads the system clock. Naive datetimes are taken as UTC,
    aware ones are converted to UTC first. Fractional seconds are floored.
    """
    if value is None:
        value = time.time()
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc)
        return calendar.timegm(value.timetuple())
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError("time must be epoch seconds or a datetime, got {!r}".format(type(value).__name__))
    return math.floor(value)


def strings_equal(s1: str, s2: str) -> bool:
    """
    Timing-attack resistant string comparison.

    Normal comparison using == will short-circuit on the first mismatching
    character. This avoids that by scanning the whole string, though we
    still reveal to a timing attack whether the strings are the same
    length.
    """
    return compare_digest(s1.encode("utf-8", "surrogatepass"), s2.encode("utf-8", "surrogatepass"))
