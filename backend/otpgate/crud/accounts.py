# otpgate/crud/accounts.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, TypeVar

from sqlalchemy import inspect, select, text
from sqlalchemy.orm import Session

from otpgate.core.config import settings
from otpgate.core.errors import AccountNotFound
from otpgate.db.session import EXCLUSIVE_LOCK_TIMEOUT
from otpgate.models.account import Account

T = TypeVar("T")

SessionFactory = Callable[[], Session]


def get(db: Session, account_id: int) -> Account | None:
    stmt = select(Account).where(Account.id == account_id)
    return db.execute(stmt).scalar_one_or_none()


def get_for_update(
    db: Session,
    account_id: int,
    lock_timeout_seconds: float | None = None,
) -> Account:
    """
    Read an account and hold its row lock until the surrounding transaction ends.

    On SQLite the lock is the database write lock, taken when the transaction
    begins; use ``exclusive_update`` there so the connection asks for it.

    Raises AccountNotFound when the row does not exist, which aborts the unit.
    """
    if db.get_bind().dialect.name == "postgresql":
        timeout = settings.lock_timeout_seconds if lock_timeout_seconds is None else lock_timeout_seconds
        db.execute(text(f"SET LOCAL lock_timeout = {int(timeout * 1000)}"))

    stmt = (
        select(Account)
        .where(Account.id == account_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    account = db.execute(stmt).scalar_one_or_none()
    if account is None:
        raise AccountNotFound(account_id)
    return account


def update(db: Session, account: Account, changes: Mapping[str, Any]) -> Account:
    columns = {attr.key for attr in inspect(Account).column_attrs}
    unknown = set(changes) - columns
    if unknown:
        raise ValueError(f"Unknown account fields: {sorted(unknown)}")

    for key, value in changes.items():
        setattr(account, key, value)
    db.flush()
    return account


def run_in_transaction(session_factory: SessionFactory, fn: Callable[[Session], T]) -> T:
    """Run ``fn`` in a fresh transaction: commit on return, roll back on any exception."""
    with session_factory() as db, db.begin():
        return fn(db)


@contextmanager
def exclusive_update(
    session_factory: SessionFactory,
    account_id: int,
    lock_timeout_seconds: float | None = None,
) -> Iterator[tuple[Session, Account]]:
    """
    Scoped read-check-write unit over one account.

    Yields the session and the locked account. Leaving the block normally
    commits whatever was written through ``update``; any exception rolls the
    whole unit back. Either way the lock is released.
    """
    timeout = settings.lock_timeout_seconds if lock_timeout_seconds is None else lock_timeout_seconds
    with session_factory() as db, db.begin():
        db.connection(execution_options={EXCLUSIVE_LOCK_TIMEOUT: timeout})
        account = get_for_update(db, account_id, timeout)
        yield db, account
