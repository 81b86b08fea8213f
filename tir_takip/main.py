import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from tir_takip.api.router import api_router
from tir_takip.config import settings
from tir_takip.core.admin_auth import log_admin_gate_status
from tir_takip.core.circuit_breaker import blob_store_circuit_breaker
from tir_takip.core.exceptions import StoreError, ValidationFailedException
from tir_takip.core.logging_config import setup_logging, cleanup_old_logs
from tir_takip.core.logging_utils import mask_path, sanitize_log_message
from tir_takip.middleware.logging_middleware import LoggingMiddleware
from tir_takip.middleware.rate_limit import setup_rate_limiting
from tir_takip.middleware.security import setup_security_middleware
from tir_takip.schemas.base import validation_issues
from tir_takip.storage.bootstrap import bootstrap_store, close_store, get_active_store

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
)


@app.on_event("startup")
async def startup_event():
    """Initialize logging and install the metadata store before serving."""
    setup_logging()
    cleanup_old_logs()
    log_admin_gate_status()
    store = await bootstrap_store(settings.DATABASE_URL, timeout=settings.DB_CONNECT_TIMEOUT)
    logger.info(f"Application startup complete (store: {store.name})")


@app.on_event("shutdown")
async def shutdown_event():
    await close_store()


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "X-API-Key", "X-Request-ID", "Accept", "Origin"],
)

# Security middleware (request size limit + security headers)
setup_security_middleware(app, max_request_size=settings.MAX_REQUEST_SIZE)

# Logging middleware (after CORS, before routes)
if settings.LOG_ENABLE_REQUEST_LOGGING:
    app.add_middleware(LoggingMiddleware)

# Rate limiting
setup_rate_limiting(app)

app.include_router(api_router, prefix=settings.API_PREFIX)


def _request_context(request: Request) -> dict:
    return {
        "Path": mask_path(request.url.path),
        "Method": request.method,
        "IP": request.client.host if request.client else None,
    }


# Exception handlers with logging
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(sanitize_log_message("HTTP error", Status=exc.status_code, Detail=exc.detail, **_request_context(request)))

    content = {"message": exc.detail}
    if isinstance(exc, ValidationFailedException):
        content["errors"] = exc.errors
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = validation_issues(exc)
    logger.warning(sanitize_log_message("Request validation failed", Errors=errors, **_request_context(request)))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Geçersiz istek", "errors": errors}
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(sanitize_log_message("Metadata store error", Error=exc.message, **_request_context(request)))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Sunucu hatası"}
    )


# Generic exception handler for unhandled exceptions
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(
        sanitize_log_message(
            f"Unhandled exception: {type(exc).__name__}",
            ExceptionMessage=str(exc),
            **_request_context(request)
        )
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Sunucu hatası"}
    )


@app.get("/health")
async def health_check():
    """Health check endpoint: active store and blob store circuit state."""
    try:
        store_name = get_active_store().name
    except StoreError:
        store_name = None
    return {
        "status": "healthy" if store_name else "starting",
        "version": settings.VERSION,
        "store": store_name,
        "blobStore": blob_store_circuit_breaker.get_status(),
    }


@app.get("/")
async def root():
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": f"{settings.API_PREFIX}/docs"
    }
