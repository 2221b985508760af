import logging
from typing import Optional

from . import utils
from .otp import DEFAULT_DIGITS, OTP
from .utils import Timestamp

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30


class TOTP(OTP):
    """
    Handler for time-based OTP counters.
    """

    def __init__(
        self,
        secret: bytes,
        digits: int = DEFAULT_DIGITS,
        name: Optional[str] = None,
        issuer: Optional[str] = None,
        interval: int = DEFAULT_INTERVAL,
    ) -> None:
        """
        :param secret: raw shared secret
        :param digits: number of integers in the OTP. Some apps expect this to be 6 digits, others support more.
        :param name: account name
        :param issuer: issuer
        :param interval: the time interval in seconds for OTP. This defaults to 30.
        """
        if isinstance(interval, bool) or not isinstance(interval, int):
            raise TypeError("interval must be an integer")
        if interval <= 0:
            raise ValueError("interval must be a positive number of seconds")
        self.interval = interval
        super().__init__(secret=secret, digits=digits, name=name, issuer=issuer)

    def at(self, for_time: Timestamp, counter_offset: int = 0) -> str:
        """
        Accepts either a Unix timestamp integer or a datetime object.

        :param for_time: the time to generate an OTP for
        :param counter_offset: the amount of ticks to add to the time counter
        :returns: OTP value
        """
        return self.generate_otp(self.timecode(for_time) + counter_offset)

    def now(self) -> str:
        """
        Generate the current time OTP

        :returns: OTP value
        """
        return self.at(utils.to_unix())

    def verify(self, otp: str, for_time: Optional[Timestamp] = None, since: Optional[Timestamp] = None) -> bool:
        """
        Verifies the OTP passed in against the current time OTP.

        A code is only accepted once: pass the time of the last accepted
        code as ``since`` and a match is rejected unless it belongs to a
        strictly later time window. Storing that time after a successful
        verification is up to the caller.

        :param otp: the OTP to check against
        :param for_time: Time to check OTP at (defaults to now)
        :param since: time the last code was accepted, if any
        :returns: True if verification succeeded, False otherwise
        """
        otp = str(otp)
        if len(otp) != self.digits:
            return False

        # read the clock once so the code and the replay check agree
        now = utils.to_unix(for_time)
        if not utils.strings_equal(otp, self.at(now)):
            return False
        if since is None:
            return True

        counter = self.timecode(now)
        last_counter = self.timecode(since)
        if counter <= last_counter:
            logger.debug("Rejected reused OTP for window %d, last accepted window %d", counter, last_counter)
            return False
        return True

    def provisioning_uri(self, name: Optional[str] = None, issuer_name: Optional[str] = None, **kwargs) -> str:
        """
        Returns the provisioning URI for the OTP.  This can then be
        encoded in a QR Code and used to provision an OTP app like
        Google Authenticator.

        See also:
            https://github.com/google/google-authenticator/wiki/Key-Uri-Format

        :param name: name of the user account
        :param issuer_name: the name of the OTP issuer; this will be the
            organization title of the OTP entry in Authenticator
        :returns: provisioning URI
        """
        issuer = issuer_name if issuer_name else self.issuer
        label = name if name else self.name
        params = {}
        if issuer is not None:
            label = issuer + ":" + label
            params["issuer"] = issuer
        if self.digits != DEFAULT_DIGITS:
            params["digits"] = self.digits
        if self.interval != DEFAULT_INTERVAL:
            params["period"] = self.interval
        params.update(kwargs)
        return utils.build_uri(self.byte_secret(), label, params)

    def timecode(self, for_time: Timestamp) -> int:
        """
        Accepts either a timezone naive (UTC) or aware datetime, or a Unix
        timestamp, and returns the counter of the window it falls in.
        """
        return utils.to_unix(for_time) // self.interval
