"""
Interview Proctor Service - FastAPI Application

Mounts the proctoring router under /api and logs every request.
"""
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .proctor.api import router as proctor_router
from .utils.logging import setup_logger, log_startup, log_request, log_error

# Polled by load balancers and browsers; not worth a log line each
QUIET_PATHS = {"/health", "/api/health", "/favicon.ico"}


app = FastAPI(
    title=settings.APP_NAME,
    description="Integrity monitoring for remote interviews",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)


# ============================================================================
# Request Logging Middleware
# ============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its status and timing."""
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as e:
        log_error(type(e).__name__, f"{request.method} {request.url.path}: {e}")
        raise

    if request.url.path not in QUIET_PATHS:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        log_request(request.method, request.url.path, response.status_code, elapsed_ms)

    return response


# The candidate page and the interviewer dashboard are served from other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # must stay False with a wildcard origin
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(proctor_router)


@app.on_event("startup")
async def startup_event():
    setup_logger("interview_proctor", settings.LOG_LEVEL)
    log_startup(settings.APP_NAME, settings.PORT, settings.DEBUG)


@app.get("/health")
async def health_check():
    """Service liveness."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": app.version
    }


@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "docs": "/docs" if settings.DEBUG else "Disabled in production"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("interview_proctor.main:app", host="0.0.0.0", port=settings.PORT)
