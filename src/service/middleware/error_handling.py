import logging
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request
from fastapi.responses import JSONResponse

from .logging import describe_session

logger = logging.getLogger('service.middleware')


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Turns an exception escaping a handler into a JSON 500.

    The session middleware sits inside this one, so by the time the exception
    arrives here the persist phase has been skipped and the stored session is
    exactly what it was before the request.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                f"Unhandled error for {request.method} {request.url.path}, session changes discarded "
                f"({describe_session(request)}): {exc}",
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error occurred",
                    "error_code": "internal_error",
                    "message": "The request failed and session changes were not saved.",
                },
            )
