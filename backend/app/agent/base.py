from abc import ABC, abstractmethod

from app.agent.artifacts import ContentIdea, IdeaBatch
from app.agent.llm_client import LLMClient, parse_structured
from app.agent.prompts.content import CONTENT_SYSTEM_PROMPT, build_prompt
from app.agent.registry import AGENTS, AgentDefinition
from app.core.config import settings


class BaseAgent(ABC):
    """Abstract base class for the content agents run by the orchestrator."""

    def __init__(self, name: str, llm: LLMClient | None = None):
        self.name = name
        self.llm = llm or LLMClient()

    @abstractmethod
    def build_prompt(self, site_text: str, comment_text: str) -> str:
        """Build the user prompt sent to the model."""

    def get_system_prompt(self) -> str:
        return CONTENT_SYSTEM_PROMPT

    def interpret_response(self, raw_text: str) -> list[ContentIdea]:
        return parse_structured(raw_text, IdeaBatch).ideas

    async def run(self, site_text: str, comment_text: str) -> list[ContentIdea]:
        raw_text = await self.llm.generate_text(
            system_prompt=self.get_system_prompt(),
            user_prompt=self.build_prompt(site_text, comment_text),
        )
        return self.interpret_response(raw_text)


class PersonaAgent(BaseAgent):
    """Agent whose prompt is driven by a catalog AgentDefinition."""

    def __init__(self, definition: AgentDefinition, llm: LLMClient | None = None):
        super().__init__(name=definition.name, llm=llm)
        self.definition = definition

    def build_prompt(self, site_text: str, comment_text: str) -> str:
        return build_prompt(
            self.definition,
            site_text,
            comment_text,
            max_chars=settings.PROMPT_MAX_CHARS,
            ideas_count=settings.IDEAS_PER_AGENT,
        )


def default_agents(llm: LLMClient | None = None) -> list[BaseAgent]:
    """One agent per catalog entry, sharing a single provider client."""
    shared_llm = llm or LLMClient()
    return [PersonaAgent(definition, llm=shared_llm) for definition in AGENTS]
