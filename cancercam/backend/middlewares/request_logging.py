# cancercam/backend/middlewares/request_logging.py

import re
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from cancercam.logging.logger import logging

# client ids are echoed into headers and log lines
REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9-]{1,64}")


def resolve_request_id(header_value) -> str:
    if header_value and REQUEST_ID_PATTERN.fullmatch(header_value):
        return header_value
    return str(uuid.uuid4())


class RequestIdLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get("X-Request-Id"))
        request.state.request_id = request_id
        start = time.time()

        response = await call_next(request)

        duration_ms = (time.time() - start) * 1000
        response.headers["X-Request-Id"] = request_id

        # set by /api/classify: the per-request artifact directory name
        artifact_id = getattr(request.state, "artifact_id", "-")
        logging.info(
            f"[REQ] id={request_id} artifact_id={artifact_id} method={request.method} path={request.url.path} "
            f"status={response.status_code} duration_ms={duration_ms:.2f}"
        )
        return response
