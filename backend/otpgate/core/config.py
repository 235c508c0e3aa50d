from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "otpgate"
    app_env: str = "development"

    database_url: str = "sqlite:///./otpgate.sqlite"
    # Upper bound on waiting for an account row lock
    lock_timeout_seconds: float = 5.0

    # OTP defaults, overridable per call
    otp_token_length: int = 6
    hotp_window: int = 3
    totp_window: int = 1
    totp_interval_length: int = 30

    # Fields stripped from accounts handed back after a successful verification
    drop_account_keys: list[str] = ["otp_secret"]

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
