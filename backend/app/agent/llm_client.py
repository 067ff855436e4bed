import asyncio
import json
import logging
import re
from typing import TypeVar

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class GenerationError(Exception):
    """Raised when the provider call or the decoding of its answer fails."""


def _extract_fenced_block(text: str) -> str | None:
    blocks = re.findall(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    return blocks[0].strip() if blocks else None


def _extract_json_object(text: str) -> str | None:
    """Best-effort extraction of the first balanced top-level JSON object."""
    start_idx = text.find("{")
    if start_idx == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i, ch in enumerate(text[start_idx:], start=start_idx):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start_idx:i + 1]
    return None


def _json_candidates(raw_text: str) -> list[str]:
    text = (raw_text or "").strip()
    if not text:
        return []

    candidates = [text]
    fenced = _extract_fenced_block(text)
    if fenced:
        candidates.append(fenced)
    balanced = _extract_json_object(text)
    if balanced:
        candidates.append(balanced)
    return list(dict.fromkeys(candidates))


def parse_structured(raw_text: str, response_schema: type[T]) -> T:
    """Decode a model answer into ``response_schema``.

    Markdown fences and prose around the JSON object are tolerated; anything
    that does not validate against the schema raises GenerationError.
    """
    candidates = _json_candidates(raw_text)
    if not candidates:
        raise GenerationError("Model returned empty content for structured response")

    parse_errors: list[str] = []
    for candidate in candidates:
        try:
            return response_schema.model_validate(json.loads(candidate, strict=False))
        except (json.JSONDecodeError, ValidationError) as exc:
            parse_errors.append(str(exc))
    raise GenerationError(
        "Unable to parse structured response: " + " | ".join(parse_errors[:3])
    )


class LLMClient:
    """Provider-agnostic client speaking the OpenAI chat completions API."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS

        # LLM_API_KEY wins; GEMINI_API_KEY keeps older deployments working.
        resolved_api_key = api_key or settings.LLM_API_KEY or settings.GEMINI_API_KEY
        resolved_base_url = base_url or settings.LLM_BASE_URL

        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
            timeout=self.timeout,
            max_retries=0,
        )

    def _chat_completion_kwargs(self) -> dict:
        if settings.LLM_JSON_MODE:
            return {"response_format": {"type": "json_object"}}
        return {}

    async def generate_text(self, system_prompt: str, user_prompt: str) -> str:
        """Send one prompt and return the raw text of the first choice."""
        logger.info("Issuing request to model %s...", self.model_name)
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model_name,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    **self._chat_completion_kwargs(),
                ),
                timeout=self.timeout,
            )
        except TimeoutError as exc:
            raise GenerationError(
                f"Provider {self.model_name} did not answer within {self.timeout}s"
            ) from exc
        except OpenAIError as exc:
            raise GenerationError(f"Provider {self.model_name} call failed: {exc}") from exc

        if not getattr(response, "choices", None):
            logger.error("Received no choices from %s: %s", self.model_name, response)
            raise GenerationError(f"Provider {self.model_name} returned no output")

        return response.choices[0].message.content or ""
