# topup/db/get_db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from topup.core import config
from topup.db.base import Base

engine = create_engine(config.DATABASE_URL, echo=False, future=True, pool_pre_ping=True)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    # Register every model on the metadata before creating tables
    from topup.models import user, refresh_token, product, transaction, referral  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
