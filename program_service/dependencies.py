from collections.abc import Generator
from functools import lru_cache

from sqlalchemy.orm import Session
from svix.webhooks import Webhook

from .config import get_settings
from .database import SessionLocal
from .services.llm_runtime import GeminiJsonGenerator, JsonGenerator, get_chat_llm


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache(maxsize=1)
def get_program_generator() -> JsonGenerator:
    return GeminiJsonGenerator(get_chat_llm(get_settings()))


@lru_cache(maxsize=1)
def get_clerk_webhook() -> Webhook:
    return Webhook(get_settings().CLERK_WEBHOOK_SECRET)
