from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from sqlmodel import Session

from app.agent.worker import AnalysisWorker
from app.core.db import engine


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def get_worker(request: Request) -> AnalysisWorker:
    return request.app.state.worker


SessionDep = Annotated[Session, Depends(get_db)]
WorkerDep = Annotated[AnalysisWorker, Depends(get_worker)]
