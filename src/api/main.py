"""FastAPI application entry point."""

import warnings
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models.responses import ErrorCodes, ErrorResponse
from api.routes import charts_router, health_router, reports_router
from api.routes.health import database_available
from core.config import API_DEBUG, API_VERSION


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not database_available():
        warnings.warn("Database not initialized; run src/scripts/init_db.py")
    yield


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests in the same shape as service errors."""
    details = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "detail": ErrorResponse(
                error="Invalid request",
                code=ErrorCodes.INVALID_REQUEST,
                details=details,
            ).model_dump()
        },
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with standard error format."""
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            code=ErrorCodes.INTERNAL_ERROR,
            details=[],
        ).model_dump(),
    )


def create_app() -> FastAPI:
    application = FastAPI(
        title="Arbeitsrapport API",
        description="Work report storage, chart aggregation and CSV/Excel/PDF export",
        version=API_VERSION,
        debug=API_DEBUG,
        lifespan=lifespan,
    )

    # CORS for the web client during development
    if API_DEBUG:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(Exception, global_exception_handler)

    application.include_router(health_router)
    application.include_router(charts_router)
    application.include_router(reports_router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT

    uvicorn.run("api.main:app", host=API_HOST, port=API_PORT, reload=API_DEBUG)
