import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio.api.v1.admin import router as admin_router
from portfolio.api.v1.contact import router as contact_router
from portfolio.api.v1.projects import router as projects_router
from portfolio.api.v1.testimonials import router as testimonials_router
from portfolio.core.config import get_settings
from portfolio.core.errors import InvalidQuery, InvalidValue, PortfolioError
from portfolio.schemas.common import error_envelope

settings = get_settings()

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Portfolio API",
    version="1.0.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

app.include_router(contact_router, prefix="/api/v1", tags=["contact"])
app.include_router(projects_router, prefix="/api/v1", tags=["projects"])
app.include_router(testimonials_router, prefix="/api/v1", tags=["testimonials"])
app.include_router(admin_router, prefix="/api/v1", tags=["admin"])


def _detail(value) -> str | None:
    if value is None or not get_settings().expose_error_details:
        return None
    return str(value)


@app.exception_handler(PortfolioError)
async def _portfolio_error_handler(request: Request, exc: PortfolioError):
    if exc.status_code >= 500:
        logger.warning("request_failed path=%s kind=%s", request.url.path, type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.message, _detail(exc.detail)))


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    # Bad query/path input is a malformed query; bad bodies are invalid values.
    in_query = errors and all(str((err.get("loc") or ("body",))[0]) in {"query", "path"} for err in errors)
    error_cls = InvalidQuery if in_query else InvalidValue
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in (first.get("loc") or ())[1:])
    message = f"{field}: {first.get('msg')}" if field else error_cls.default_message
    return JSONResponse(status_code=error_cls.status_code, content=error_envelope(message))


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Hide internal details for 5xx unless explicitly enabled.
    if exc.status_code >= 500 and not get_settings().expose_error_details:
        message = "Internal server error"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse(status_code=500, content=error_envelope("Internal server error", _detail(exc)))


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    if not settings.security_headers_enabled:
        return response

    headers = response.headers
    if "X-Content-Type-Options" not in headers:
        headers["X-Content-Type-Options"] = "nosniff"
    if "X-Frame-Options" not in headers:
        headers["X-Frame-Options"] = "DENY"
    if "Referrer-Policy" not in headers:
        headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if "Content-Security-Policy" not in headers:
        headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
    if request.url.path.startswith("/api/v1/admin"):
        headers["Cache-Control"] = "no-store"
    return response


@app.get("/health")
async def health_check():
    return {"status": "ok"}
