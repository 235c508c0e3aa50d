from otpgate.core.errors import AccountNotFound, ErrorKind, OtpGateError, StorageFailure
from otpgate.schemas.otp import OtpMethod, VerificationOptions, VerificationRequest
from otpgate.services.audit import AuditLevel, AuditLog, LoggingAuditLog
from otpgate.services.verifier import Denied, OtpVerifier, Verified

__all__ = [
    "AccountNotFound",
    "AuditLevel",
    "AuditLog",
    "Denied",
    "ErrorKind",
    "LoggingAuditLog",
    "OtpGateError",
    "OtpMethod",
    "OtpVerifier",
    "StorageFailure",
    "VerificationOptions",
    "VerificationRequest",
    "Verified",
]
