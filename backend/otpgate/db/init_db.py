from sqlalchemy.engine import Engine

from otpgate.db.base import Base
from otpgate.db.session import engine as default_engine

# import models so the metadata knows about every table
from otpgate import models  # noqa: F401


def init_db(bind: Engine | None = None) -> None:
    Base.metadata.create_all(bind=bind or default_engine)
