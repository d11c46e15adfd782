import logging
from fastapi import FastAPI
from app.settings import settings
from app.logging import configure_logging
from app.error_handlers import attach_error_handlers
from api.router import api_router
from infra.db.session import init_db

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Selects taxonomy competencies for a job description and drafts an assessment case for them.",
)


@app.on_event("startup")
def _on_startup():
    init_db()
    provider = "openai" if settings.OPENAI_API_KEY else "openrouter" if settings.OPENROUTER_API_KEY else None
    if provider is None:
        logger.warning("No LLM provider key set; generation endpoints will answer 502")
    logger.info(f"Taxonomy store at {settings.SQLITE_PATH}, LLM provider: {provider or 'none'}")


attach_error_handlers(app)
app.include_router(api_router)
