import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.agent.artifacts import ContentIdea
from app.agent.base import BaseAgent
from app.agent.llm_client import GenerationError
from app.core.config import settings
from app.crud import create_contents, update_project_status
from app.models import ContentCreate, ProjectStatus

logger = logging.getLogger(__name__)


@dataclass
class OrchestrationReport:
    project_id: int
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    ideas_written: int = 0
    final_status: ProjectStatus | None = None


def _store_ideas(
    engine: Engine, project_id: int, agent_name: str, ideas: list[ContentIdea]
) -> int:
    contents_in = [
        ContentCreate(
            project_id=project_id,
            agent_name=agent_name,
            hook=item.hook,
            idea=item.content,
            source=item.source,
        )
        for item in ideas
    ]
    if not contents_in:
        return 0
    with Session(engine) as session:
        return len(create_contents(session=session, contents_in=contents_in))


def _set_project_status(engine: Engine, project_id: int, status: ProjectStatus) -> None:
    with Session(engine) as session:
        update_project_status(session=session, project_id=project_id, status=status)


async def run_agent_pipeline(
    agent: BaseAgent,
    project_id: int,
    site_text: str,
    comment_text: str,
    *,
    engine: Engine,
) -> int | None:
    """
    Generate and persist one agent's ideas.
    Returns the number of rows written, or None if the agent failed; failures
    never leave this function.
    """
    try:
        ideas = await agent.run(site_text, comment_text)
        return await asyncio.to_thread(_store_ideas, engine, project_id, agent.name, ideas)
    except (GenerationError, SQLAlchemyError) as exc:
        logger.warning("Agent %s failed for project #%s: %s", agent.name, project_id, exc)
    except Exception:
        logger.exception("Agent %s crashed for project #%s", agent.name, project_id)
    return None


async def _finalize_project(engine: Engine, project_id: int) -> ProjectStatus:
    attempts = max(1, settings.STATUS_UPDATE_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            await asyncio.to_thread(_set_project_status, engine, project_id, ProjectStatus.DONE)
            return ProjectStatus.DONE
        except SQLAlchemyError as exc:
            logger.warning(
                "Failed to mark project #%s done (attempt %s/%s): %s",
                project_id,
                attempt,
                attempts,
                exc,
            )
            if attempt < attempts:
                await asyncio.sleep(settings.STATUS_UPDATE_RETRY_DELAY_SECONDS)

    logger.error("Project #%s stalled: status update retries exhausted", project_id)
    try:
        await asyncio.to_thread(_set_project_status, engine, project_id, ProjectStatus.STALLED)
    except SQLAlchemyError as exc:
        logger.error("Failed to mark project #%s stalled: %s", project_id, exc)
    return ProjectStatus.STALLED


async def run_multi_agents(
    project_id: int,
    site_text: str,
    comment_text: str,
    *,
    agents: list[BaseAgent],
    engine: Engine,
) -> OrchestrationReport:
    """
    Run every agent concurrently, wait for all of them to settle, then close
    the project. The status write happens exactly once, after the join.
    """
    logger.info("Starting analysis of project #%s with %s agents...", project_id, len(agents))

    results = await asyncio.gather(
        *(
            run_agent_pipeline(agent, project_id, site_text, comment_text, engine=engine)
            for agent in agents
        )
    )

    report = OrchestrationReport(project_id=project_id)
    for agent, written in zip(agents, results):
        if written is None:
            report.failed.append(agent.name)
        else:
            report.succeeded.append(agent.name)
            report.ideas_written += written

    report.final_status = await _finalize_project(engine, project_id)
    logger.info(
        "Project #%s finished as %s (%s ideas, failed agents: %s).",
        project_id,
        report.final_status.value,
        report.ideas_written,
        ", ".join(report.failed) or "none",
    )
    return report
