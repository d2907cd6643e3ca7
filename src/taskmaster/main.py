from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import TaskValidationError
from .logging_setup import setup_logging
from .routers import tasks as tasks_router
from .settings import Settings, get_settings
from .storage import get_backend
from .store import TaskStore

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Create, edit, complete, delete, filter and search tasks.",
    },
]


def _validation_response(message: str, detail: list) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": message,
            "detail": jsonable_encoder(detail),
        },
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, store: Optional[TaskStore] = None) -> FastAPI:
    """
    Build the application and the TaskStore it owns.

    Args:
        settings: defaults to get_settings() (environment).
        store: pre-built store, mainly for tests; otherwise one is created from
            settings and loaded from the configured backend.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    if store is None:
        store = TaskStore(get_backend(settings), settings.storage_key)
        if settings.seed_sample_tasks:
            store.seed_samples()

    app = FastAPI(
        title="TaskMaster",
        description="Single-user task list manager persisted to a key-value slot.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.store = store
    app.state.settings = settings

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return _validation_response("Request validation failed", list(exc.errors()))

    @app.exception_handler(TaskValidationError)
    async def task_validation_handler(request: Request, exc: TaskValidationError) -> JSONResponse:
        return _validation_response(exc.message, exc.errors)

    @app.get("/", summary="Health Check", tags=["health"])
    def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health, backend and task count.
        """
        current: TaskStore = request.app.state.store
        return {"message": "Healthy", "backend": current.backend.name, "tasks": len(current)}

    app.include_router(tasks_router.router)
    logger.info("TaskMaster app ready backend=%s key=%s", store.backend.name, store.key)
    return app


app = create_app()
