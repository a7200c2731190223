import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.ai import router as ai_router
from app.api.v1.analytics import router as analytics_router
from app.api.v1.announcements import router as announcements_router
from app.api.v1.articles import router as articles_router
from app.api.v1.audit_logs import router as audit_logs_router
from app.api.v1.auth import router as auth_router
from app.api.v1.dashboard import router as dashboard_router
from app.api.v1.feedback import router as feedback_router
from app.api.v1.notes import router as notes_router
from app.api.v1.users import router as users_router
from app.api.v1.voice import router as voice_router
from app.config import get_settings
from app.database import async_session_factory
from app.services.users import UserService

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_initial_admin():
    """Create the bootstrap admin so a fresh install can be logged into."""
    async with async_session_factory() as session:
        try:
            await UserService.seed_admin(session)
        except Exception as e:
            logger.warning("Seed initial admin skipped: %s", e)
            await session.rollback()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info("Local cache directory: %s", settings.LOCAL_CACHE_DIR)
    if settings.GEMINI_API_KEY:
        logger.info("Gemini: enabled, model=%s", settings.GEMINI_MODEL)
    else:
        logger.warning("Gemini: GEMINI_API_KEY not set, AI features will return fallbacks")
    await seed_initial_admin()
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API v1 routers
API_V1_PREFIX = "/api/v1"
app.include_router(auth_router, prefix=API_V1_PREFIX)
app.include_router(users_router, prefix=API_V1_PREFIX)
app.include_router(feedback_router, prefix=API_V1_PREFIX)
app.include_router(audit_logs_router, prefix=API_V1_PREFIX)
app.include_router(analytics_router, prefix=API_V1_PREFIX)
app.include_router(dashboard_router, prefix=API_V1_PREFIX)
app.include_router(notes_router, prefix=API_V1_PREFIX)
app.include_router(announcements_router, prefix=API_V1_PREFIX)
app.include_router(articles_router, prefix=API_V1_PREFIX)
app.include_router(ai_router, prefix=API_V1_PREFIX)
app.include_router(voice_router, prefix=API_V1_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": settings.APP_VERSION}
