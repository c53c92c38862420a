from collections.abc import Generator

import pytest
from sqlmodel import Session, SQLModel

from oxbow.tests.fakes import memory_engine


@pytest.fixture
def engine():
    engine = memory_engine()
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
