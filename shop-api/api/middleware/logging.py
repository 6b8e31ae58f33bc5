"""
Logging middleware
"""
import time
import uuid
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from utils.logger import get_logger

logger = get_logger(__name__)

class LoggingMiddleware(BaseHTTPMiddleware):
    """Request logging middleware"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start_time = time.time()

        logger.info(
            "Request started",
            request_id=request_id,
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent")
        )

        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = time.time() - start_time
            logger.error(
                "Request failed",
                error=str(exc),
                request_id=request_id,
                process_time=f"{process_time:.3f}s"
            )
            raise

        process_time = time.time() - start_time
        log_kwargs = dict(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=f"{process_time:.3f}s"
        )
        if response.status_code >= 500:
            logger.error("Request completed", **log_kwargs)
        elif response.status_code >= 400:
            logger.warning("Request completed", **log_kwargs)
        else:
            logger.info("Request completed", **log_kwargs)

        response.headers["X-Request-ID"] = request_id
        return response

def add_logging_middleware(app: FastAPI):
    """Add logging middleware"""
    app.add_middleware(LoggingMiddleware)
