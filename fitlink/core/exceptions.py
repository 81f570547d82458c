import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors()), "message": "Validation Error", "request_id": request_id},
    )

async def integrity_exception_handler(request: Request, exc: IntegrityError):
    request_id = getattr(request.state, "request_id", None)
    logger.warning("Integrity error on %s %s (request_id=%s): %s", request.method, request.url.path, request_id, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Database conflict. A record with this identifier likely already exists.", "request_id": request_id},
    )
