from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from oxbow.core.config import settings


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))


def init_db() -> None:
    # Tables are owned by SQLModel metadata; importing models registers them.
    from oxbow import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
