from __future__ import annotations

import json
import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.analysis.errors import AnalysisError, InputTooLarge, InvalidRequest, MissingFields

logger = logging.getLogger(__name__)

# Body errors that mean a required field was absent or null.
MISSING_FIELD_ERROR_TYPES = {"missing", "string_type"}


def classify_validation_error(exc: RequestValidationError) -> AnalysisError:
    errors = exc.errors()
    if any(str(err.get("type", "")).endswith("too_long") for err in errors):
        return InputTooLarge()
    if errors and all(
        err.get("type") in MISSING_FIELD_ERROR_TYPES and tuple(err.get("loc") or ())[:1] == ("body",)
        for err in errors
    ):
        return MissingFields()
    return InvalidRequest()


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = classify_validation_error(exc)
    logger.warning(
        json.dumps(
            {
                "event": "request_rejected",
                "path": request.url.path,
                "error_code": error.code,
                "error_types": sorted({str(err.get("type")) for err in exc.errors()}),
            }
        )
    )
    return JSONResponse(status_code=error.status_code, content={"error": str(error)})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) and exc.detail else None
    if detail is None:
        try:
            detail = HTTPStatus(exc.status_code).phrase
        except ValueError:
            detail = "Request failed"
    return JSONResponse(status_code=exc.status_code, content={"error": detail}, headers=exc.headers)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
