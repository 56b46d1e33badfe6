from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from entity_crud.db.session import shutdown
from entity_crud.dependencies import DB
from entity_crud.exceptions import DomainError, NotFoundError, PersistenceError, ValidationError
from entity_crud.logging import get_logger
from entity_crud.middleware import RequestIDMiddleware
from entity_crud.routers.hotel import router as hotel_router
from entity_crud.schemas.error import ErrorDetail, ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Close database connections gracefully on shutdown."""
    yield
    await shutdown()


app = FastAPI(lifespan=lifespan)
app.add_middleware(RequestIDMiddleware)
app.include_router(hotel_router)


def _error_json(code: str, message: str) -> dict[str, object]:
    """Build the standard error envelope as a dict for JSONResponse."""
    return ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump()


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Return 400 for malformed, disallowed or inconsistent input."""
    logger.warning("validation_error", error=exc.message)
    return JSONResponse(status_code=400, content=_error_json("validation_error", exc.message))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Return 404 with the entity details."""
    return JSONResponse(status_code=404, content=_error_json("not_found", exc.message))


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Log the store failure with its cause; the client only sees the failed call kind."""
    logger.error("persistence_error", kind=exc.kind, exc_info=exc.cause)
    return JSONResponse(status_code=500, content=_error_json("persistence_error", exc.kind))


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Return 400 for any other domain-level violation."""
    logger.warning("domain_error", error=exc.message)
    return JSONResponse(status_code=400, content=_error_json("domain_error", exc.message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep framework errors (401 from the user resolver, 404 routing) in the same envelope."""
    code = "unauthorized" if exc.status_code == 401 else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_json(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unhandled exceptions and return a safe error response.

    - Logs full exception with traceback (includes request_id from context)
    - Returns generic error to client (no stack traces leaked)
    """
    logger.exception("unhandled_exception")
    return JSONResponse(
        status_code=500,
        content=_error_json("internal_error", "Internal server error"),
    )


@app.get("/health")
async def health(db: DB) -> dict[str, str]:
    """Health check endpoint, returns 200 only if the database answers a ping query."""
    await db.execute(text("SELECT 1"))
    return {"status": "ok"}
