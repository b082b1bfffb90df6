import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shatter_api.config import settings
from shatter_api.cors import cors_middleware, set_cors_headers
from shatter_api.errors import InvalidInputError
from shatter_api.routers import items, pricing

logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {405: "Method not allowed"}


def _error_response(status_code: int, message: str) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content={"error": message})


def create_app() -> FastAPI:
    logging.getLogger("shatter_api").setLevel(settings.LOG_LEVEL)

    app = FastAPI(
        title="ShatterRealms Dynamic Content API",
        default_response_class=ORJSONResponse,
    )

    app.middleware("http")(cors_middleware)

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(_request: Request, exc: InvalidInputError) -> ORJSONResponse:
        logger.info("Rejected request input", extra={"reason": str(exc)})
        return _error_response(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_request: Request, exc: RequestValidationError) -> ORJSONResponse:
        logger.info("Malformed request body", extra={"errors": exc.errors()})
        return _error_response(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
        message = _STATUS_MESSAGES.get(exc.status_code) or str(exc.detail)
        response = _error_response(exc.status_code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", exc_info=exc)
        # Runs outside the middleware stack, so CORS headers are applied here.
        response = _error_response(500, "Internal server error")
        set_cors_headers(response.headers)
        return response

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    app.include_router(pricing.router)
    app.include_router(items.router)

    return app


app = create_app()
