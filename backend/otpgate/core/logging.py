import logging

from otpgate.core.config import settings


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    logging.basicConfig(
        level=level or settings.log_level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    # Keep anything touching secrets quiet below WARNING
    logging.getLogger("otpgate.security").setLevel(logging.WARNING)
