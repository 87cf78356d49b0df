from fastapi import FastAPI

from app.sarisuki.api import api_router
from app.sarisuki.backend.realtime import RealtimeHub
from app.sarisuki.core.config import settings
from app.sarisuki.core.errors import setup_exception_handlers
from app.sarisuki.core.logging import configure_logging
from app.sarisuki.middleware.observability import ObservabilityMiddleware
from app.sarisuki.middleware.trace import TraceIdMiddleware
from app.sarisuki.services.workspaces import WorkspaceRegistry


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME)
    app.state.hub = RealtimeHub()
    app.state.workspaces = WorkspaceRegistry(app.state.hub)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
