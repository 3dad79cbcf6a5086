from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class TransportError(Exception):
    """Raised by a Mailer when a message could not be handed to the transport."""


class StoreUnavailable(Exception):
    """Raised by a repository when the shared database cannot be read or written."""


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )

async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
    """Report database outages as 503 so callers know to retry later"""
    return JSONResponse(
        status_code=503,
        content=create_error_response("Notification store is unavailable", 503)
    )
