"""
Typed failures raised by the contest services.

Every error carries the HTTP status the API reports it with, so routers
never translate them by hand. ``register_exception_handlers`` wires the
handler into the FastAPI app.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ContestError(Exception):
    """Base class for every refused contest operation"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {"detail": self.message, "error": type(self).__name__}


class NotFound(ContestError):
    """Join code, contest, participant or submission does not exist"""

    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ContestError):
    """Duplicate nickname, submission or vote, or a lost status race"""

    status_code = status.HTTP_409_CONFLICT


class Unauthorized(ContestError):
    """Session or teacher does not own the resource"""

    status_code = status.HTTP_403_FORBIDDEN


class PreconditionFailed(ContestError):
    """Contest is in the wrong phase or of the wrong type"""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransition(ContestError):
    """Requested status change is not an edge of the state machine"""

    status_code = status.HTTP_409_CONFLICT


async def contest_error_handler(request: Request, exc: ContestError):
    logger.warning(
        "%s %s refused: %s (%s)",
        request.method,
        request.url.path,
        exc.message,
        type(exc).__name__,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ContestError, contest_error_handler)
