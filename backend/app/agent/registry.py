from pydantic import BaseModel, ConfigDict


class AgentDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    role: str
    mission: str


# Names are stored verbatim in contents.agent_name.
AGENTS: tuple[AgentDefinition, ...] = (
    AgentDefinition(
        name="Polariser",
        role="Provocateur",
        mission="Find unpopular opinions worth defending.",
    ),
    AgentDefinition(
        name="Expertise",
        role="Technical Expert",
        mission="Give sharp, concrete, actionable advice.",
    ),
    AgentDefinition(
        name="Divertir",
        role="Humorist",
        mission="Turn the problems people raise into something funny.",
    ),
    AgentDefinition(
        name="Vente",
        role="Copywriter",
        mission="Bridge the discussion to the paid offer.",
    ),
)
