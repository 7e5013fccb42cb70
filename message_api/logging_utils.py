import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from pythonjsonlogger.json import JsonFormatter

from message_api.metrics import record_http_request


# Context variable to store request_id for the current request
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with ISO-8601 timestamps and the current request_id."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("ts"):
            now = datetime.now(timezone.utc)
            log_record["ts"] = now.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        log_record["level"] = record.levelname

        if "request_id" not in log_record:
            req_id = request_id_ctx.get()
            if req_id:
                log_record["request_id"] = req_id


def setup_logging(log_level: str = "INFO"):
    """
    Setup structured JSON logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger = logging.getLogger()
    logger.setLevel(log_level.upper())
    logger.handlers = []

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter("%(ts)s %(level)s %(name)s %(message)s")
    json_handler.setFormatter(formatter)

    logger.addHandler(json_handler)

    # Route uvicorn output through the same JSON handler
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = []
        uvicorn_logger.addHandler(json_handler)
        uvicorn_logger.propagate = False

    # RequestLoggingMiddleware replaces the access log
    logging.getLogger("uvicorn.access").disabled = True

    return logger


# Metrics label for requests that matched no route
UNMATCHED_PATH = "<unmatched>"


def _route_path(request: Request) -> str:
    """
    Full template of the matched route, e.g. /api/messages/receiver/{receiverID}.

    Included routers may report a path relative to their mount point, in
    which case the mount prefix is carried in root_path.
    """
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if not path:
        return UNMATCHED_PATH
    root_path = request.scope.get("root_path", "")
    if root_path and not path.startswith(root_path):
        path = root_path + path
    return path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests in structured JSON format.

    Log keys:
    - ts, level: from the formatter
    - request_id: unique per request, echoed in the X-Request-ID header
    - method, path, status, latency_ms

    For message routes, also includes:
    - operation: handler name
    - outcome: ok, validation, not_found, storage or unhandled
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())

        token = request_id_ctx.set(request_id)
        start_time = time.time()

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            latency_seconds = time.time() - start_time
            latency_ms = round(latency_seconds * 1000, 2)
            path = _route_path(request)

            if path != "/metrics":
                record_http_request(
                    method=request.method,
                    path=path,
                    status=response.status_code,
                    latency_seconds=latency_seconds
                )

            log_data = {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_ms": latency_ms,
            }

            if hasattr(request.state, "operation_log_data"):
                log_data.update(request.state.operation_log_data)

            logger = logging.getLogger("message_api.requests")

            if response.status_code >= 500:
                logger.error("Request completed", extra=log_data)
            elif response.status_code >= 400:
                logger.warning("Request completed", extra=log_data)
            else:
                logger.info("Request completed", extra=log_data)

            return response
        finally:
            request_id_ctx.reset(token)


def log_operation_data(request: Request, operation: str, outcome: str):
    """
    Attach message-operation fields to the request state.
    The middleware merges them into the request log line.
    """
    request.state.operation_log_data = {
        "operation": operation,
        "outcome": outcome,
    }
