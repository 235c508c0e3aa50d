# otpgate/models/account.py
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from otpgate.db.base import Base


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("otp_last_counter >= 0", name="ck_accounts_otp_last_counter"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)

    # Base32 shared secret, written only at provisioning time
    otp_secret: Mapped[str] = mapped_column(String(64), nullable=False)
    # Last HOTP counter accepted; only ever moves forward
    otp_last_counter: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
