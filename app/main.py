import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.api.router import api_router
from app.config import settings
from app.core.database import init_db
from app.services.git import GitRangeOperations, ProcessRegistry, ProcessRunner, RepositoryMirror
from app.services.github import close_github_client
from app.services.revisions import RangeDiffOrchestrator


def setup_logging() -> None:
    """Configure application logging."""
    # Format: timestamp - level - logger name - message
    log_format = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
    date_format = "%H:%M:%S"

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=log_format,
        datefmt=date_format,
        stream=sys.stdout,
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def build_range_diff_orchestrator(registry: ProcessRegistry) -> RangeDiffOrchestrator:
    """Wire the git services around one shared process registry."""
    runner = ProcessRunner(registry)
    mirror = RepositoryMirror(runner)
    return RangeDiffOrchestrator(GitRangeOperations(mirror, runner))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    # Startup
    setup_logging()
    logger.info(f"PR revisions API starting up (git cache: {settings.git_cache_dir})")
    if settings.debug:
        await init_db()
    registry = ProcessRegistry()
    app.state.process_registry = registry
    app.state.range_diff_orchestrator = build_range_diff_orchestrator(registry)
    yield
    # Shutdown
    killed = registry.terminate_all()
    if killed:
        logger.info(f"Killed {killed} git processes still running at shutdown")
    await close_github_client()
    logger.info("PR revisions API shutting down")


app = FastAPI(
    title="PR Revisions API",
    description="Force-push aware pull request revision history and range-diff",
    version="0.1.0",
    lifespan=lifespan,
)

# Trust X-Forwarded-Proto from the TLS-terminating reverse proxy
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log failed requests and range-diff computations."""
    if request.method == "OPTIONS" or request.url.path == "/health":
        return await call_next(request)

    response = await call_next(request)

    path = request.url.path
    if response.status_code >= 400 or "range-diff" in path:
        logger.info(f"{request.method} {path} -> {response.status_code}")

    return response


# Include API routes
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
