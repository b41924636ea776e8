from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from resumeforge.api.routes.auth import router as auth_router
from resumeforge.api.routes.fields import router as field_router
from resumeforge.api.routes.uploads import router as upload_router
from resumeforge.api.routes.users import router as user_router
from resumeforge.api.schemas import ErrorEnvelope
from resumeforge.config import get_settings
from resumeforge.core.uploads import UPLOAD_URL_PREFIX
from resumeforge.db.init import init_database
from resumeforge.errors import ServiceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, errors: dict[str, list[str]] | None = None) -> JSONResponse:
    body = ErrorEnvelope(code=status_code, message=message, errors=errors)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def validation_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in {"body", "query", "path"}]
        key = ".".join(loc) or "request"
        errors.setdefault(key, []).append(error.get("msg", "invalid value"))
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def _service_error(_request: Request, exc: ServiceError) -> JSONResponse:
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = validation_errors(exc)
        first = next(iter(errors.values()))[0] if errors else "validation failed"
        return error_response(422, first, errors)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(500, "internal server error")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(user_router)
    app.include_router(auth_router)
    app.include_router(field_router)
    app.include_router(upload_router)

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=str(settings.upload_dir)), name="uploads")
    return app
