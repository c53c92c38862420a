from collections.abc import Callable, Generator
from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from oxbow.core.db import engine
from oxbow.mirror.llm_client import LLMClient
from oxbow.notifications import PushGateway


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


# Clients are built inside the handler so a missing API key becomes a structured error.
LLMClientFactory = Callable[..., LLMClient]


def get_llm_factory() -> LLMClientFactory:
    return LLMClient


def get_push_gateway() -> PushGateway:
    return PushGateway()


SessionDep = Annotated[Session, Depends(get_db)]
LLMFactoryDep = Annotated[LLMClientFactory, Depends(get_llm_factory)]
PushGatewayDep = Annotated[PushGateway, Depends(get_push_gateway)]
