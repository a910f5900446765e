# ================================
# MIDDLEWARE (core/middleware.py)
# ================================

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import time
import uuid
import logging

logger = logging.getLogger(__name__)

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request-ID und Laufzeit für jede Anfrage"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        # Request ID für Logging (vom Client übernehmen, falls gesetzt)
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path} "
                f"(request {request_id}): {e}",
                exc_info=True
            )
            raise

        # Response Headers
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        response.headers["X-Request-ID"] = request_id

        return response

class AuditMiddleware(BaseHTTPMiddleware):
    """Middleware für Request/Response-Logging"""

    async def dispatch(self, request: Request, call_next):
        # Health Checks nicht loggen
        if request.url.path == "/health":
            return await call_next(request)

        await self._log_request(request)

        response = await call_next(request)

        await self._log_response(request, response)

        return response

    async def _log_request(self, request: Request):
        """Loggt eingehende Requests"""
        logger.info(
            f"Request: {request.method} {request.url.path}",
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "method": request.method,
                "path": request.url.path,
                "query_params": str(request.query_params),
                "ip_address": request.client.host if request.client else None
            }
        )

    async def _log_response(self, request: Request, response: Response):
        """Loggt ausgehende Responses"""
        logger.info(
            f"Response: {response.status_code} for {request.method} {request.url.path}",
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "status_code": response.status_code
            }
        )
