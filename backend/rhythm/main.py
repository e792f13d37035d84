"""Main FastAPI application for the rhythm planner backend."""
from fastapi import FastAPI, Request

from rhythm.api.routes.rhythm import router as rhythm_router
from rhythm.core.config import settings
from rhythm.core.logging import configure_logging
from rhythm.core.middleware import RequestIDMiddleware
from rhythm.observability.client import init_opik
from rhythm.observability.tracing import trace

configure_logging(log_level=settings.log_level, planner_log_level="DEBUG" if settings.debug else None)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(rhythm_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
