import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.agent.worker import AnalysisJob
from app.api.deps import SessionDep, WorkerDep
from app.crud import create_project
from app.models import AnalyzeRequest, AnalyzeResponse, ErrorMessage, ProjectCreate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={500: {"model": ErrorMessage}},
)
def analyze(session: SessionDep, worker: WorkerDep, payload: AnalyzeRequest):
    logger.info("Received page for analysis: %s", payload.url)
    # Refuse before creating the row, or the project would stay pending forever.
    if not worker.is_running:
        logger.error("Analysis worker is not running; rejecting %s", payload.url)
        return JSONResponse(status_code=500, content={"error": "Analysis worker is not running"})

    try:
        project = create_project(session=session, project_in=ProjectCreate(url=payload.url or ""))
    except SQLAlchemyError as exc:
        logger.error("Could not create project for %s: %s", payload.url, exc)
        return JSONResponse(status_code=500, content={"error": "Database connection error"})

    # Generation runs in the background; the extension only needs the id.
    worker.submit(
        AnalysisJob(
            project_id=project.id,
            site_text=payload.site_text or "",
            comment_text=payload.comments or "",
        )
    )
    return AnalyzeResponse(project_id=project.id, message="Agents launched!")
