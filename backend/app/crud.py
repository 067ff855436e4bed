from collections.abc import Sequence

from sqlmodel import Session, col, select

from app.models import Content, ContentCreate, Project, ProjectCreate, ProjectStatus


def create_project(*, session: Session, project_in: ProjectCreate) -> Project:
    db_project = Project.model_validate(project_in)
    session.add(db_project)
    session.commit()
    session.refresh(db_project)
    return db_project


def create_contents(*, session: Session, contents_in: list[ContentCreate]) -> list[Content]:
    """Insert a batch of contents in one transaction: all rows or none."""
    db_contents = [Content.model_validate(content_in) for content_in in contents_in]
    session.add_all(db_contents)
    session.commit()
    for db_content in db_contents:
        session.refresh(db_content)
    return db_contents


def update_project_status(
    *, session: Session, project_id: int, status: ProjectStatus
) -> Project | None:
    """Move a pending project to a terminal status.

    Returns None when the project does not exist or has already left
    ``pending``; a terminal status is never overwritten.
    """
    db_project = session.get(Project, project_id)
    if db_project is None or db_project.status != ProjectStatus.PENDING:
        return None
    db_project.status = status
    session.add(db_project)
    session.commit()
    session.refresh(db_project)
    return db_project


def list_projects(*, session: Session, limit: int) -> Sequence[Project]:
    statement = select(Project).order_by(col(Project.id).desc()).limit(limit)
    return session.exec(statement).all()


def list_contents(*, session: Session, project_id: int) -> Sequence[Content]:
    statement = select(Content).where(Content.project_id == project_id)
    return session.exec(statement).all()
