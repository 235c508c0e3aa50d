from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Internal reasons a verification is refused. Only ever written to the audit log."""

    INVALID_OTP = "invalid one-time password"
    INVALID_ACCOUNT_STATE = "invalid account state"
    ACCOUNT_NOT_FOUND = "account not found"
    STORAGE_FAILURE = "storage failure"


class OtpGateError(Exception):
    pass


class AccountNotFound(OtpGateError):
    def __init__(self, account_id):
        super().__init__(f"account {account_id!r} not found")
        self.account_id = account_id


class StorageFailure(OtpGateError):
    """
    Fatal failure of the record store during a verification (transaction,
    lock wait or update). The message never carries storage-layer detail;
    the original exception is kept as ``__cause__``.
    """

    def __init__(self, message: str = "verification unavailable"):
        super().__init__(message)
