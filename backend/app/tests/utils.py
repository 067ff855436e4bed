from sqlalchemy.exc import OperationalError

from app.agent.base import PersonaAgent
from app.agent.registry import AGENTS

IDEAS_JSON = '{"ideas":[{"hook":"H","content":"I","source":"S"}]}'


class FakeLLM:
    """Stands in for LLMClient; answers per agent role or with a default."""

    def __init__(self, default: str = IDEAS_JSON, by_role: dict | None = None):
        self.default = default
        self.by_role = by_role or {}
        self.prompts: list[str] = []

    async def generate_text(self, system_prompt: str, user_prompt: str) -> str:
        self.prompts.append(user_prompt)
        for role, answer in self.by_role.items():
            if f"ROLE: {role}." in user_prompt:
                if isinstance(answer, Exception):
                    raise answer
                return answer
        return self.default


def make_agents(llm) -> list[PersonaAgent]:
    return [PersonaAgent(definition, llm=llm) for definition in AGENTS]


def db_down() -> OperationalError:
    return OperationalError("UPDATE projects", {}, Exception("Lost connection to MySQL server"))


def agent_definition(name: str):
    return next(definition for definition in AGENTS if definition.name == name)
