"""App-wide exception handlers — one JSON error contract for every route.

Learn: Existing API consumers parse errors as

    {"status": "error", "error": "<message>"}
    {"status": "error", "missing_fields": ["name"], "error": "name is required"}

FastAPI's defaults ({"detail": ...} and 422) would break them, so every
error path is rendered here. Validation errors become 400 and report only
the first issue.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backstage.auth.errors import ApiError

logger = structlog.get_logger()

_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def _empty_body_errors(request: Request) -> list:
    """Errors the route's body model reports for an empty JSON object."""
    body_field = getattr(request.scope.get("route"), "body_field", None)
    model = getattr(body_field, "type_", None)
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        return []
    try:
        model.model_validate({})
    except ValidationError as e:
        return e.errors()
    return []


def _first_issue(request: Request, exc: RequestValidationError) -> tuple[list, str]:
    errors = exc.errors()
    if errors and errors[0].get("type") == "json_invalid":
        # Unparseable JSON is treated as an empty body
        errors = _empty_body_errors(request) or errors
    if not errors:
        return [], "Invalid request"
    issue = errors[0]
    loc = list(issue.get("loc", ()))
    if loc and loc[0] in _LOCATIONS:
        loc = loc[1:]

    field = str(loc[-1]) if loc else "body"
    kind = issue.get("type")
    if kind == "missing":
        message = f"{field} is required"
    elif kind == "string_too_short":
        message = f"{field} cannot be empty"
    else:
        message = issue.get("msg", "Invalid request")
    return loc, message


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status, content=exc.to_body())


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    missing_fields, message = _first_issue(request, exc)
    return JSONResponse(
        status_code=400,
        content=ApiError(400, message, missing_fields=missing_fields).to_body(),
    )


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api.unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "error": "Internal server error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
