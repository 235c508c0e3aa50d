"""Shared fixtures: a file-backed SQLite database per test and a recording audit log."""

from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

from otpgate.core.config import Settings
from otpgate.db.init_db import init_db
from otpgate.db.session import build_engine
from otpgate.models.account import Account
from otpgate.services.verifier import OtpVerifier

SECRET = "JBSWY3DPEHPK3PXP"


class RecordingAuditLog:
    def __init__(self) -> None:
        self.events = []

    def record(self, *, user_id, level, message) -> None:
        self.events.append((user_id, level, message))

    @property
    def messages(self) -> list:
        return [message for _, _, message in self.events]


@pytest.fixture()
def engine(tmp_path: Path):
    eng = build_engine(f"sqlite:///{tmp_path / 'otpgate.sqlite'}", lock_timeout_seconds=5.0)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def audit() -> RecordingAuditLog:
    return RecordingAuditLog()


@pytest.fixture()
def settings() -> Settings:
    return Settings(lock_timeout_seconds=5.0)


@pytest.fixture()
def verifier(session_factory, audit, settings) -> OtpVerifier:
    return OtpVerifier(session_factory, audit=audit, settings=settings)


@pytest.fixture()
def make_account(session_factory):
    counter = {"n": 0}

    def _make(last: int = 0, secret: str = SECRET) -> int:
        counter["n"] += 1
        with session_factory() as db, db.begin():
            account = Account(
                username=f"user{counter['n']}",
                otp_secret=secret,
                otp_last_counter=last,
            )
            db.add(account)
            db.flush()
            return account.id

    return _make


@pytest.fixture()
def stored_counter(session_factory):
    def _read(account_id: int) -> int:
        with session_factory() as db:
            return db.get(Account, account_id).otp_last_counter

    return _read
