from typing import Any

from fastapi import APIRouter

from app.api.deps import SessionDep
from app.core.config import settings
from app.crud import list_contents, list_projects
from app.models import ContentPublic, ErrorMessage, ProjectPublic

router = APIRouter()


@router.get(
    "",
    response_model=list[ProjectPublic],
    responses={500: {"model": ErrorMessage}},
)
def read_projects(session: SessionDep) -> Any:
    return list_projects(session=session, limit=settings.PROJECTS_LIST_LIMIT)


@router.get(
    "/{id}",
    response_model=list[ContentPublic],
    responses={500: {"model": ErrorMessage}},
)
def read_project_contents(id: int, session: SessionDep) -> Any:
    # Unknown ids and projects whose agents have not written yet look the same.
    return list_contents(session=session, project_id=id)
