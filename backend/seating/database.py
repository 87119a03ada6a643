import os
from pathlib import Path
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///./seating.db"
TRUTHY = ("true", "1", "yes")


def env_flag(name: str, default: bool = False) -> bool:
    """Boolean switch from the environment (true/1/yes, case-insensitive)"""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUTHY


def sqlite_file_path(url: str) -> Optional[Path]:
    """Database file behind a sqlite URL; None for other backends and in-memory databases"""
    if not url.startswith("sqlite") or ":memory:" in url:
        return None
    _, _, path = url.partition(":///")
    return Path(path) if path else None


def build_engine(url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # FastAPI serves sync endpoints from a threadpool
        connect_args["check_same_thread"] = False
        db_file = sqlite_file_path(url)
        if db_file is not None:
            db_file.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=echo, connect_args=connect_args)


DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
engine: Engine = build_engine(DATABASE_URL, echo=env_flag("SQL_ECHO"))


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Create all seating tables that do not exist yet"""
    # Registers every table model with SQLModel metadata
    import seating.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
