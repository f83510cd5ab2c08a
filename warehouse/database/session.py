from contextlib import contextmanager

from sqlalchemy.orm import Session, sessionmaker

from warehouse.database.engine import engine

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """Commit everything written inside the block, or nothing."""
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
