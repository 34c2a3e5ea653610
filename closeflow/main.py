import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from closeflow.api.v1.router import api_router
from closeflow.core.config import settings
from closeflow.core.exceptions import CloseflowError
from closeflow.core.logging_config import configure_logging
from closeflow.db.session import engine
from closeflow.db.init_db import init_database

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    tags_metadata = [
        {"name": "workspaces", "description": "Workspaces and their members"},
        {"name": "periods", "description": "Opening, closing and tracking monthly close periods"},
        {"name": "tasks", "description": "Checklist tasks and recurring templates"},
        {"name": "categories", "description": "Checklist categories"},
        {"name": "audit-logs", "description": "Workspace audit trail"},
    ]

    configure_logging(settings.LOG_LEVEL)
    try:
        settings.validate_security()
    except ValueError as e:
        logger.warning("[SECURITY WARNING] %s", e)

    app = FastAPI(
        title="Closeflow Backend",
        version="1.0.0",
        description="Close management: checklists, recurring templates and monthly periods",
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=tags_metadata,
        redirect_slashes=False,  # Disable automatic 307 redirects between /route and /route/
    )

    from sqlalchemy.exc import IntegrityError, DataError
    from fastapi.exceptions import RequestValidationError

    @app.exception_handler(CloseflowError)
    async def closeflow_error_handler(request: Request, exc: CloseflowError):
        """Domain errors that escaped an endpoint"""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """Handle database integrity errors (unique constraints, foreign keys)"""
        error_msg = str(exc.orig) if exc.orig else str(exc)
        if "unique" in error_msg.lower():
            detail = "The record already exists."
            status_code = 409
        elif "foreign key" in error_msg.lower():
            detail = "The operation conflicts with related records."
            status_code = 400
        else:
            detail = "Database error."
            status_code = 400

        logger.warning("Integrity error at %s: %s - %s", request.url.path, detail, error_msg)
        return JSONResponse(
            status_code=status_code,
            content={"detail": detail},
        )

    @app.exception_handler(DataError)
    async def data_error_handler(request: Request, exc: DataError):
        """Handle database data errors (invalid types, values too long)"""
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid data (wrong type or value too long)."},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors with cleaner messages"""
        errors = []
        for error in exc.errors():
            field = ".".join(str(x) for x in error["loc"] if x != "body")
            errors.append(f"{field}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error at %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error. Please contact support."},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
        allow_headers=["*"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )

    @app.middleware("http")
    async def resolve_trailing_slash(request, call_next):
        """
        Ensure routes defined with a trailing slash still work without it,
        without issuing an HTTP redirect.
        """
        path = request.scope.get("path", "")
        if path and not path.endswith("/"):
            alt_path = f"{path}/"
            available_paths = {
                getattr(route, "path", None)
                for route in app.router.routes
                if getattr(route, "path", None)
            }
            if alt_path in available_paths:
                request.scope["path"] = alt_path
        return await call_next(request)

    @app.on_event("startup")
    async def on_startup() -> None:
        # Creates all tables, enums, indexes and constraints
        await init_database(engine)

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {}).update({
            "bearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            }
        })
        openapi_schema["security"] = [{"bearerAuth": []}]
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[assignment]

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "message": "Closeflow is running"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("closeflow.main:app", host="0.0.0.0", port=8000, reload=False)
