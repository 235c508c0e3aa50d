# otpgate/services/verifier.py
"""
One-time password verification for the second step of a login.

HOTP attempts run as a single locked read-check-write unit on the account
row: the code is tried against the counters just above ``otp_last_counter``
and the counter only ever moves forward, so a code is accepted at most once
even with concurrent callers. TOTP attempts are a plain read and leave the
account untouched, which means a TOTP code stays valid for its whole window.

Callers only ever see ``Verified`` or ``Denied("Invalid credentials")``;
the precise reason goes to the audit log. Storage failures are raised as
``StorageFailure``.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Union

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from otpgate.core.config import Settings, settings as default_settings
from otpgate.core.errors import AccountNotFound, ErrorKind, StorageFailure
from otpgate.crud import accounts
from otpgate.crud.accounts import SessionFactory
from otpgate.db.session import SessionLocal
from otpgate.models.account import Account
from otpgate.schemas.otp import OtpMethod, VerificationOptions, VerificationRequest
from otpgate.security.otp import PyOtpCodec
from otpgate.services.audit import AuditLevel, AuditLog, LoggingAuditLog

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "successful one-time password login"
DENIED_MESSAGE = "Invalid credentials"


class OtpCodec(Protocol):
    def check_counter_code(
        self, code: str, secret: str, *, last: int, window: int, token_length: int
    ) -> int | None: ...

    def check_time_code(
        self, code: str, secret: str, *, window: int, interval_length: int, token_length: int, now: float
    ) -> int | None: ...


@dataclass(frozen=True)
class Verified:
    account: dict[str, Any]


@dataclass(frozen=True)
class Rejected:
    kind: ErrorKind


@dataclass(frozen=True)
class Denied:
    message: str = DENIED_MESSAGE


VerificationResult = Union[Verified, Rejected]
VerificationOutcome = Union[Verified, Denied]


class OtpVerifier:
    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        audit: AuditLog | None = None,
        codec: OtpCodec | None = None,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._session_factory = session_factory or SessionLocal
        self._audit = audit or LoggingAuditLog()
        self._codec = codec or PyOtpCodec()
        self._settings = settings or default_settings
        self._clock = clock

    def verify(
        self,
        request: VerificationRequest | Mapping[str, Any],
        options: VerificationOptions | Mapping[str, Any] | None = None,
    ) -> VerificationOutcome:
        """Verify whichever of ``hotp``/``totp`` the request carries."""
        if not isinstance(request, VerificationRequest):
            request = VerificationRequest.model_validate(request)

        handlers = {
            OtpMethod.HOTP: self.verify_hotp,
            OtpMethod.TOTP: self.verify_totp,
        }
        return handlers[request.method](request.id, request.code, options)

    def verify_hotp(
        self,
        account_id: int,
        code: str,
        options: VerificationOptions | Mapping[str, Any] | None = None,
    ) -> VerificationOutcome:
        opts = self._options(options)
        token_length = opts.token_length or self._settings.otp_token_length
        window = self._settings.hotp_window if opts.window is None else opts.window

        try:
            result = self._advance_hotp(account_id, code, token_length, window)
        except SQLAlchemyError as exc:
            raise self._storage_failure(account_id, exc) from exc
        return self._finish(account_id, result)

    def verify_totp(
        self,
        account_id: int,
        code: str,
        options: VerificationOptions | Mapping[str, Any] | None = None,
    ) -> VerificationOutcome:
        opts = self._options(options)
        token_length = opts.token_length or self._settings.otp_token_length
        window = self._settings.totp_window if opts.window is None else opts.window
        interval_length = opts.interval_length or self._settings.totp_interval_length

        try:
            result = self._check_totp(account_id, code, token_length, window, interval_length)
        except SQLAlchemyError as exc:
            raise self._storage_failure(account_id, exc) from exc
        return self._finish(account_id, result)

    def _advance_hotp(self, account_id: int, code: str, token_length: int, window: int) -> VerificationResult:
        try:
            with accounts.exclusive_update(
                self._session_factory, account_id, self._settings.lock_timeout_seconds
            ) as (db, account):
                last = account.otp_last_counter
                matched = self._codec.check_counter_code(
                    code, account.otp_secret, last=last, window=window, token_length=token_length
                )
                if matched is None:
                    return Rejected(ErrorKind.INVALID_OTP)
                if matched <= last:
                    logger.error("Codec matched counter %s at or below stored counter %s", matched, last)
                    return Rejected(ErrorKind.INVALID_ACCOUNT_STATE)

                accounts.update(db, account, {"otp_last_counter": matched})
                logger.debug("Account %s HOTP counter advanced %s -> %s", account_id, last, matched)
                return Verified(self._sanitize(account))
        except AccountNotFound:
            return Rejected(ErrorKind.ACCOUNT_NOT_FOUND)

    def _check_totp(
        self, account_id: int, code: str, token_length: int, window: int, interval_length: int
    ) -> VerificationResult:
        with self._session_factory() as db:
            account = accounts.get(db, account_id)
            if account is None:
                return Rejected(ErrorKind.ACCOUNT_NOT_FOUND)

            matched = self._codec.check_time_code(
                code,
                account.otp_secret,
                window=window,
                interval_length=interval_length,
                token_length=token_length,
                now=self._clock(),
            )
            if matched is None:
                return Rejected(ErrorKind.INVALID_OTP)
            return Verified(self._sanitize(account))

    def _finish(self, account_id: int, result: VerificationResult) -> VerificationOutcome:
        if isinstance(result, Verified):
            self._audit.record(user_id=account_id, level=AuditLevel.INFO, message=SUCCESS_MESSAGE)
            return result
        self._audit.record(user_id=account_id, level=AuditLevel.WARN, message=result.kind.value)
        return Denied()

    def _storage_failure(self, account_id: int, exc: SQLAlchemyError) -> StorageFailure:
        logger.warning("Storage failure verifying account %s: %s", account_id, type(exc).__name__)
        self._audit.record(
            user_id=account_id, level=AuditLevel.WARN, message=ErrorKind.STORAGE_FAILURE.value
        )
        return StorageFailure()

    def _sanitize(self, account: Account) -> dict[str, Any]:
        dropped = set(self._settings.drop_account_keys)
        return {
            attr.key: getattr(account, attr.key)
            for attr in inspect(account).mapper.column_attrs
            if attr.key not in dropped
        }

    @staticmethod
    def _options(options: VerificationOptions | Mapping[str, Any] | None) -> VerificationOptions:
        if options is None:
            return VerificationOptions()
        if isinstance(options, VerificationOptions):
            return options
        return VerificationOptions.model_validate(options)
