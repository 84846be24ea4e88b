import json
from typing import Any, Protocol

import structlog
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from ..config import Settings

logger = structlog.get_logger(__name__)


class JsonGenerator(Protocol):
    async def generate_json(self, prompt: str) -> Any: ...


def get_chat_llm(settings: Settings) -> BaseChatModel:
    logger.info("using_gemini_model", model=settings.LLM_MODEL)
    return ChatGoogleGenerativeAI(
        model=settings.LLM_MODEL,
        google_api_key=settings.GEMINI_API_KEY,
        temperature=settings.LLM_TEMPERATURE,
        top_p=settings.LLM_TOP_P,
        response_mime_type="application/json",
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name!r} in LLM response")


def _decode(candidate: str) -> Any:
    return json.loads(candidate, parse_constant=_reject_constant)


def parse_json_text(text: str) -> Any:
    """Decode model output, tolerating surrounding prose or code fences."""
    text = text.strip()
    if not text:
        raise ValueError("Empty structured LLM response")

    try:
        return _decode(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise
    return _decode(text[start : end + 1])


class GeminiJsonGenerator:
    def __init__(self, llm: BaseChatModel):
        self._llm = llm

    async def generate_json(self, prompt: str) -> Any:
        response = await self._llm.ainvoke([HumanMessage(content=prompt)])
        content = response.content
        if isinstance(content, list):
            content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
        text = str(content)
        try:
            return parse_json_text(text)
        except ValueError:
            logger.error("llm_output_not_json", preview=text[:500])
            raise
