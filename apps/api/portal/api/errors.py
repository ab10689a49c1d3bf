import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portal.services.exceptions import (
    ConflictError,
    ForbiddenError,
    GeocodeFailure,
    InvalidArgumentError,
    NotFoundError,
    PersistenceFailure,
    ServiceError,
    TooFarError,
    UnauthenticatedError,
)

logger = structlog.get_logger()


def status_for(err: ServiceError) -> int:
    if isinstance(err, UnauthenticatedError):
        return 401
    if isinstance(err, (ForbiddenError, TooFarError)):
        return 403
    if isinstance(err, NotFoundError):
        return 404
    if isinstance(err, InvalidArgumentError):
        return 400
    if isinstance(err, ConflictError):
        return 409
    if isinstance(err, GeocodeFailure):
        return 502
    if isinstance(err, PersistenceFailure):
        return 500
    return 500


async def service_error_handler(request: Request, err: ServiceError) -> JSONResponse:
    status = status_for(err)
    if status >= 500:
        logger.error("service_error", code=err.code, message=err.message, path=request.url.path)

    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    return JSONResponse(
        status_code=status,
        content={"error": err.message, "code": err.code},
        headers=headers,
    )


def _describe(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


async def validation_error_handler(request: Request, err: RequestValidationError) -> JSONResponse:
    # Malformed requests share the service error body
    message = "; ".join(_describe(error) for error in err.errors()) or "invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": message, "code": InvalidArgumentError.code},
    )
