# otpgate/schemas/otp.py
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OtpMethod(str, Enum):
    HOTP = "hotp"
    TOTP = "totp"


class VerificationOptions(BaseModel):
    """Per-call OTP options. Unset fields fall back to the configured defaults."""
    model_config = ConfigDict(extra='forbid')

    token_length: int | None = Field(default=None, ge=4, le=10)
    window: int | None = Field(default=None, ge=0)
    interval_length: int | None = Field(default=None, ge=1)


class VerificationRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    id: int
    # Malformed codes are left for the codec to refuse, so they are audited like any wrong code
    hotp: str | int | None = None
    totp: str | int | None = None

    @model_validator(mode='after')
    def exactly_one_code(self) -> "VerificationRequest":
        if (self.hotp is None) == (self.totp is None):
            raise ValueError('Exactly one of hotp or totp is required')
        return self

    @property
    def method(self) -> OtpMethod:
        return OtpMethod.HOTP if self.hotp is not None else OtpMethod.TOTP

    @property
    def code(self) -> str | int:
        return self.hotp if self.hotp is not None else self.totp
