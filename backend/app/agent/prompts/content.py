from app.agent.registry import AgentDefinition

CONTENT_SYSTEM_PROMPT = """
You are one member of a content team that turns a web page and its comment thread into social media content ideas.
Stay strictly in the persona you are given and ground every idea in the provided context.
Respond with a single JSON object and nothing else.
"""

CONTENT_USER_PROMPT = """
ROLE: {role}. MISSION: {mission}

SITE CONTEXT: {site_text}
COMMENTS CONTEXT: {comment_text}

Task: Generate {ideas_count} content ideas.
Required JSON format: {{ "ideas": [{{ "hook": "...", "content": "...", "source": "..." }}] }}
"""

TRUNCATION_MARKER = "..."


def truncate_context(text: str, max_chars: int) -> str:
    """Keep a bounded prefix of the text, marked so the model knows it was cut."""
    text = text or ""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}{TRUNCATION_MARKER}"


def build_prompt(
    agent: AgentDefinition,
    site_text: str,
    comment_text: str,
    *,
    max_chars: int,
    ideas_count: int,
) -> str:
    return CONTENT_USER_PROMPT.format(
        role=agent.role,
        mission=agent.mission,
        site_text=truncate_context(site_text, max_chars),
        comment_text=truncate_context(comment_text, max_chars),
        ideas_count=ideas_count,
    ).strip()
