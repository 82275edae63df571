"""
Bistro API — Error taxonomy and HTTP mapping

Every failure that reaches a caller is one of the kinds below. Store and
processor errors are caught at the boundary and re-raised as one of these;
anything that slips through is rendered as a generic 500.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class BistroError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class InvalidRequest(BistroError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Malformed request."


class Unauthenticated(BistroError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized Access"

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(BistroError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden Access"


class NotFound(BistroError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."


class UpstreamFailure(BistroError):
    """Payment processor or document store unavailable."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Upstream service failure. Please retry."


class DuplicateTransaction(Exception):
    """Raised by the payment store when a transaction id is already recorded."""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction '{transaction_id}' already recorded.")


async def _bistro_error_handler(request: Request, exc: BistroError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request body.", "errors": errors},
    )


async def _store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled store error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=UpstreamFailure.status_code,
        content={"detail": UpstreamFailure.default_detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BistroError, _bistro_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, _store_error_handler)
