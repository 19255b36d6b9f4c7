"""FastAPI exception handlers for normalized API errors"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import ApiError, http_status

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"


def register_exception_handlers(app: FastAPI) -> None:
    """Answer every ApiError with the backend's error envelope"""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        status = http_status(exc)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.kind.value}: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {status}: {exc.message}")

        headers = {}
        session_id = getattr(request.state, "session_id", None)
        if session_id:
            headers[SESSION_HEADER] = session_id
        return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)
