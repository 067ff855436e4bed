from pydantic import BaseModel, Field


class ContentIdea(BaseModel):
    hook: str = Field(description="Short attention-grabbing opening line")
    content: str = Field(description="Body of the content idea")
    source: str = Field(description="Where the idea comes from in the site text or comments")


class IdeaBatch(BaseModel):
    """Artifact produced by every content agent."""
    ideas: list[ContentIdea] = Field(description="Content ideas generated from the page and its comments")
