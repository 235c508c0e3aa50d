"""TOTP verification against a fixed clock."""

import pytest

from otpgate.security.otp import code_at
from otpgate.services.verifier import Denied, OtpVerifier, Verified

from conftest import SECRET

STEP = 56_000_000  # time-step of the code under test (interval 30s)


def verifier_at(session_factory, audit, settings, now: float) -> OtpVerifier:
    return OtpVerifier(session_factory, audit=audit, settings=settings, clock=lambda: now)


@pytest.mark.parametrize("offset,accepted", [
    (-2, False),
    (-1, True),
    (0, True),
    (1, True),
    (2, False),
])
def test_window_of_one_step_each_side(
    session_factory, audit, settings, make_account, offset: int, accepted: bool
) -> None:
    account_id = make_account()
    code = code_at(SECRET, STEP)

    for second in (0, 15, 29):
        now = (STEP + offset) * 30 + second
        verifier = verifier_at(session_factory, audit, settings, now)
        result = verifier.verify_totp(account_id, code, {"interval_length": 30, "window": 1})
        assert isinstance(result, Verified) is accepted, (offset, second)


def test_wider_window(session_factory, audit, settings, make_account) -> None:
    account_id = make_account()
    verifier = verifier_at(session_factory, audit, settings, (STEP + 2) * 30)
    code = code_at(SECRET, STEP)

    assert isinstance(verifier.verify_totp(account_id, code), Denied)
    assert isinstance(verifier.verify_totp(account_id, code, {"window": 2}), Verified)


def test_custom_interval_length(session_factory, audit, settings, make_account) -> None:
    account_id = make_account()
    now = 1_700_000_000
    code = code_at(SECRET, now // 60)
    verifier = verifier_at(session_factory, audit, settings, now)

    assert isinstance(verifier.verify_totp(account_id, code, {"interval_length": 60, "window": 0}), Verified)


def test_totp_leaves_counter_alone(session_factory, audit, settings, make_account, stored_counter) -> None:
    account_id = make_account(last=4)
    verifier = verifier_at(session_factory, audit, settings, STEP * 30)

    result = verifier.verify_totp(account_id, code_at(SECRET, STEP))

    assert isinstance(result, Verified)
    assert "otp_secret" not in result.account
    assert result.account["otp_last_counter"] == 4
    assert stored_counter(account_id) == 4


def test_same_code_accepted_again_within_window(session_factory, audit, settings, make_account) -> None:
    # No last-used step is stored for TOTP, so a code is good for its whole window
    account_id = make_account()
    verifier = verifier_at(session_factory, audit, settings, STEP * 30 + 5)
    code = code_at(SECRET, STEP)

    assert isinstance(verifier.verify_totp(account_id, code), Verified)
    assert isinstance(verifier.verify_totp(account_id, code), Verified)


def test_unknown_account_and_wrong_code(session_factory, audit, settings, make_account) -> None:
    account_id = make_account()
    verifier = verifier_at(session_factory, audit, settings, STEP * 30)

    assert verifier.verify_totp(account_id + 1, code_at(SECRET, STEP)) == Denied()
    assert verifier.verify_totp(account_id, code_at(SECRET, STEP + 5)) == Denied()
    assert verifier.verify_totp(account_id, "12ab56") == Denied()
    assert audit.messages == [
        "account not found",
        "invalid one-time password",
        "invalid one-time password",
    ]


def test_not_blocked_by_hotp_unit_on_another_account(session_factory, audit, make_account) -> None:
    from otpgate.core.config import Settings
    from otpgate.crud import accounts

    locked = make_account()
    other = make_account()
    verifier = OtpVerifier(
        session_factory,
        audit=audit,
        settings=Settings(lock_timeout_seconds=0.2),
        clock=lambda: STEP * 30,
    )

    with accounts.exclusive_update(session_factory, locked):
        result = verifier.verify_totp(other, code_at(SECRET, STEP))

    assert isinstance(result, Verified)
    assert audit.messages == ["successful one-time password login"]
