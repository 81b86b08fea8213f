import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from tir_takip.core.logging_utils import mask_headers, mask_path, sanitize_log_message

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every API request with a request id; share tokens in paths are masked."""

    SKIP_PATHS = ("/health", "/api/docs", "/api/redoc", "/api/openapi.json")

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path == "/" or path.startswith(self.SKIP_PATHS):
            return await call_next(request)

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        method = request.method
        safe_path = mask_path(path)
        client_ip = request.client.host if request.client else None

        logger.debug(
            sanitize_log_message(
                f"Request: {method} {safe_path}",
                RequestID=request_id,
                IP=client_ip,
                UserAgent=request.headers.get("user-agent"),
                Headers=mask_headers(dict(request.headers))
            )
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                sanitize_log_message(
                    f"Exception in request: {method} {safe_path}",
                    RequestID=request_id,
                    ProcessTime=f"{time.perf_counter() - start_time:.3f}s",
                    IP=client_ip,
                    Error=str(e)
                )
            )
            raise

        response.headers["X-Request-ID"] = request_id
        logger.info(
            sanitize_log_message(
                f"Response: {method} {safe_path}",
                RequestID=request_id,
                Status=response.status_code,
                ProcessTime=f"{time.perf_counter() - start_time:.3f}s",
                IP=client_ip
            )
        )
        return response
