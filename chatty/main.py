from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from chatty.core.config import settings, setup_logging
from chatty.core.errors import ServiceError, service_error_handler, unhandled_error_handler
from chatty.core.utils.rate_limiter import limiter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from chatty.db.session import init_db
from chatty.routers.auth import router as auth_router
from chatty.routers.me import router as me_router
from chatty.routers.chats import router as chats_router

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages the FastAPI application lifecycle.

    - On startup: creates missing tables.
    - On shutdown: logs the shutdown.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting Chatty API")
    await init_db()
    if not settings.GEMINI_API_KEY or settings.AI_MOCK_MODE:
        logger.warning("Gemini API key missing or mock mode enabled, replies come from the fallback responder")

    yield

    logger.info("Shutting down Chatty API")

app = FastAPI(
    title="Chatty API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

setup_logging(settings.LOG_LEVEL, settings.LOG_TO_FILE)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.include_router(auth_router)
app.include_router(me_router)
app.include_router(chats_router)

@app.get("/")
@limiter.limit("10/minute")
async def root(request: Request):
    """
    Health-check endpoint.
    """
    return {"message": "Welcome to ChatBot API"}
