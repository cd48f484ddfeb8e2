# armoire/data/database.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from armoire.utils.settings import DATABASE_URL
from armoire.utils.logging import get_logger

logger = get_logger(__name__)

engine = create_engine(DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Jedna transakcja: commit przy sukcesie, rollback przy KAZDYM wyjatku.
    Wyjatek leci dalej do wywolujacego.
    """
    try:
        yield db
        db.commit()
    except Exception:
        logger.info("Transaction rolled back")
        db.rollback()
        raise
