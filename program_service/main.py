import structlog

from .app_factory import create_service_app
from .config import get_settings
from .logging_config import configure_logging
from .routers import clerk_webhook, generate_program, plans

configure_logging()
logger = structlog.get_logger(__name__)

# Fail fast: both secrets are required before any route is served
settings = get_settings()

tags_metadata = [
    {
        "name": "Programs",
        "description": "Generate a personalised workout and diet program with Gemini and store it.",
    },
    {
        "name": "Plans",
        "description": "Read stored programs for a user.",
    },
    {
        "name": "Webhooks",
        "description": "Clerk user lifecycle events delivered through Svix.",
    },
]

app = create_service_app(
    title="program-service",
    version="0.1.0",
    description="Fitness program generation and Clerk user sync",
    openapi_tags=tags_metadata,
)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(clerk_webhook.router)
app.include_router(generate_program.router)
app.include_router(plans.router)

logger.info("program_service_started", environment=settings.ENVIRONMENT, model=settings.LLM_MODEL)
