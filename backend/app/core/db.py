from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings

# Table classes must be imported before create_all sees the metadata
from app import models  # noqa: F401

engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI))


def init_db(session: Session) -> None:
    """Create every table known to SQLModel on the session's engine."""
    SQLModel.metadata.create_all(session.get_bind())
