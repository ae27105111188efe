"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from app.api import health, onboarding
from app.config import settings
from app.core.logging import setup_logging
from app.core.tracing import TracingContext
from app.database.mongo import close_client, get_database
from app.repositories.intake_submission import IntakeSubmissionRepository

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        IntakeSubmissionRepository(get_database()).ensure_indexes()
    except PyMongoError as exc:
        logger.warning(f"Skipping intake index creation: {exc}")
    yield
    close_client()


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Intake form and GitHub repository picker for project onboarding",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    TracingContext.clear()
    TracingContext.set(correlation_id=request.headers.get("X-Request-ID", ""))
    correlation_id = TracingContext.get_or_create_correlation_id()
    try:
        response = await call_next(request)
    finally:
        TracingContext.clear()
    response.headers["X-Request-ID"] = correlation_id
    return response


app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(onboarding.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
