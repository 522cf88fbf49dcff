from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from insights.core.config import settings


def _engine_kwargs() -> dict:
    if settings.uses_sqlite:
        # SQLite file lives under DATA_DIR; FastAPI may hand the session to another thread
        Path(settings.DATA_DIR).mkdir(parents=True, exist_ok=True)
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 300,    # Recycle connections every 5 minutes
        "pool_pre_ping": True,  # Validate connections before use
        "pool_timeout": 30,
    }


engine = create_engine(settings.SQLALCHEMY_DATABASE_URI, echo=False, **_engine_kwargs())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
