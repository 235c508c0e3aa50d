# otpgate/security/otp.py
"""
OTP codec backed by pyotp.

Both checks return the counter (HOTP) or time-step (TOTP) the code was
generated for, or ``None`` when nothing in the window matches.
"""
from __future__ import annotations

import time

import pyotp
from pyotp.utils import strings_equal


def valid_token(code: str, token_length: int) -> bool:
    return (
        isinstance(code, str)
        and len(code) == token_length
        and code.isascii()
        and code.isdigit()
    )


def code_at(secret: str, counter: int, token_length: int = 6) -> str:
    # A TOTP code for time-step N is the HOTP code for counter N
    return pyotp.HOTP(secret, digits=token_length).at(counter)


class PyOtpCodec:
    def check_counter_code(
        self,
        code: str,
        secret: str,
        *,
        last: int,
        window: int,
        token_length: int = 6,
    ) -> int | None:
        """Try counters ``last + 1`` through ``last + window``."""
        if not valid_token(code, token_length):
            return None
        for counter in range(last + 1, last + window + 1):
            if strings_equal(code, code_at(secret, counter, token_length)):
                return counter
        return None

    def check_time_code(
        self,
        code: str,
        secret: str,
        *,
        window: int,
        interval_length: int = 30,
        token_length: int = 6,
        now: float | None = None,
    ) -> int | None:
        """Try the time-steps ``window`` either side of the current one."""
        if not valid_token(code, token_length):
            return None
        now = time.time() if now is None else now
        current = int(now // interval_length)
        for step in range(current - window, current + window + 1):
            if step < 0:
                continue
            if strings_equal(code, code_at(secret, step, token_length)):
                return step
        return None
