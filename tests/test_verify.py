import datetime
from types import SimpleNamespace

import pytest

from pytotp import TOTP, is_valid, random_secret, utils, verification_code


@pytest.fixture
def now():
    return int(datetime.datetime.now(datetime.timezone.utc).timestamp())


@pytest.mark.parametrize("digits,bad", [(6, "abcdef"), (4, "abcd"), (10, None)])
def test_accepts_matching_code(now, digits, bad):
    date_time = datetime.datetime.fromtimestamp(now, datetime.timezone.utc)
    naive_date_time = date_time.replace(tzinfo=None)

    for _ in range(200):
        secret = random_secret()
        code = verification_code(secret, time=now, digits=digits)
        assert code == verification_code(secret, time=date_time, digits=digits)
        assert code == verification_code(secret, time=naive_date_time, digits=digits)

        for t in (now, date_time, naive_date_time):
            assert is_valid(secret, code, time=t, digits=digits)
            if bad is not None:
                assert not is_valid(secret, bad, time=t, digits=digits)


def test_rejects_reused_codes(now):
    next_time = (now // 30 + 1) * 30

    for _ in range(200):
        secret = random_secret()
        code = verification_code(secret, time=now)
        next_code = verification_code(secret, time=next_time)
        assert is_valid(secret, code, time=now)
        assert not is_valid(secret, "abcdef", time=now)

        # invalid codes are rejected whatever the watermark
        assert not is_valid(secret, "abcdef", time=now, since=now)
        assert not is_valid(secret, "abcdef", time=now, since=next_time)
        assert not is_valid(secret, "abcdef", time=now, since=None)

        # nothing accepted yet
        assert is_valid(secret, code, time=now, since=None)

        # the code was just accepted
        assert not is_valid(secret, code, time=now, since=now)

        # next window after the last accepted one
        assert is_valid(secret, next_code, time=next_time, since=now)


def test_rejects_watermark_later_than_now():
    secret = random_secret()
    code = verification_code(secret, time=1000)
    assert not is_valid(secret, code, time=1000, since=2000)


def test_watermark_in_same_window_but_earlier_second():
    secret = random_secret()
    code = verification_code(secret, time=1019)
    # 1019 and 1005 share the window starting at 990
    assert not is_valid(secret, code, time=1019, since=1005)
    assert is_valid(secret, code, time=1019, since=989)


def test_watermark_accepts_datetimes():
    secret = random_secret()
    accepted = datetime.datetime(2020, 4, 8, 17, 49, 59)
    later = datetime.datetime(2020, 4, 8, 17, 50, 0)
    code = verification_code(secret, time=later)
    assert is_valid(secret, code, time=later, since=accepted)
    assert is_valid(secret, code, time=later, since=accepted.replace(tzinfo=datetime.timezone.utc))
    assert not is_valid(secret, code, time=later, since=later)


def test_rejects_codes_of_wrong_length(now):
    secret = random_secret()
    code = verification_code(secret, time=now)
    assert not is_valid(secret, "", time=now)
    assert not is_valid(secret, code[:5], time=now)
    assert not is_valid(secret, "0" + code, time=now)
    assert not is_valid(secret, code + "0", time=now)


def test_rejects_extra_leading_zero():
    secret = utils.base32_decode("BKFCZBQPZOXNTER5HKHGPHPGCXBNBDNC")
    assert is_valid(secret, "005357", time=1586369351)
    assert not is_valid(secret, "0005357", time=1586369351)
    assert not is_valid(secret, "5357", time=1586369351)


def test_rejects_fullwidth_digits():
    secret = utils.base32_decode("BKFCZBQPZOXNTER5HKHGPHPGCXBNBDNC")
    assert not is_valid(secret, "００５３５７", time=1586369351)


def test_verify_defaults_to_now(monkeypatch):
    totp = TOTP(b"12345678901234567890", digits=8)
    monkeypatch.setattr(utils, "time", SimpleNamespace(time=lambda: 59.0))
    assert totp.verify("94287082")
    assert not totp.verify("94287082", since=30)
    assert totp.verify("94287082", since=29)


def test_verify_uses_one_clock_reading(monkeypatch):
    # a clock that moves into the next window after the first read
    readings = iter([59.0, 60.0])
    monkeypatch.setattr(utils, "time", SimpleNamespace(time=lambda: next(readings)))
    totp = TOTP(b"12345678901234567890", digits=8)
    assert totp.verify("94287082", since=0) is True
    assert next(readings) == 60.0


def test_non_string_code_is_compared_as_text():
    secret = b"12345678901234567890"
    assert is_valid(secret, 94287082, time=59, digits=8)
    assert not is_valid(secret, None, time=59)


def test_rejects_unencodable_code():
    secret = b"12345678901234567890"
    assert not is_valid(secret, "\ud800" * 6, time=59)
    assert not TOTP(secret, digits=8).verify("\udfff" * 8, for_time=59)
