from datetime import datetime, timezone
from enum import Enum

from pydantic import ConfigDict
from sqlalchemy import DateTime, Text
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


class ProjectStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    # Only reached when the final status write keeps failing.
    STALLED = "stalled"


# Shared properties
class ProjectBase(SQLModel):
    # Pages arrive with tracking parameters; no length cap.
    url: str = Field(default="", sa_type=Text)


class ProjectCreate(ProjectBase):
    pass


# Database model
class Project(ProjectBase, table=True):
    __tablename__ = "projects"

    id: int | None = Field(default=None, primary_key=True)
    status: ProjectStatus = Field(
        default=ProjectStatus.PENDING,
        sa_type=SAEnum(  # type: ignore
            ProjectStatus,
            native_enum=False,
            length=50,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    contents: list["Content"] = Relationship(back_populates="project", cascade_delete=True)


# Properties to return via API
class ProjectPublic(ProjectBase):
    id: int
    status: ProjectStatus
    created_at: datetime | None = None


class ContentBase(SQLModel):
    agent_name: str = Field(max_length=50)
    hook: str = Field(sa_type=Text)
    idea: str = Field(sa_type=Text)
    source: str = Field(sa_type=Text)


class ContentCreate(ContentBase):
    project_id: int


class Content(ContentBase, table=True):
    __tablename__ = "contents"

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(
        foreign_key="projects.id", nullable=False, ondelete="CASCADE", index=True
    )
    project: Project | None = Relationship(back_populates="contents")


class ContentPublic(ContentBase):
    id: int
    project_id: int


# Intake payload sent by the browser extension
class AnalyzeRequest(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str | None = None
    site_text: str | None = Field(default=None, alias="siteText")
    comments: str | None = None


class AnalyzeResponse(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    project_id: int = Field(alias="projectId")
    message: str


# Generic error body
class ErrorMessage(SQLModel):
    error: str
