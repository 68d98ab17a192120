from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ...engine.errors import ChessError, MoveInFlight, NotYourTurn, TerminalGame


logger = logging.getLogger(__name__)

HTTP_422 = 422

_CODES: Dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    HTTP_422: "unprocessable_entity",
}

# Rule errors that mean "the game is not in a state to accept this"
_CONFLICTS = (TerminalGame, MoveInFlight, NotYourTurn)


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: Optional[List[Dict[str, str]]] = None,
) -> Dict[str, Any]:
    """Build the ``{"error": {...}}`` body shared by every failure response."""
    body: Dict[str, Any] = {
        "code": code,
        "message": message,
        "type": err_type,
        "request_id": request_id,
    }
    if field_errors:
        body["field_errors"] = field_errors
    return {"error": body}


def status_code_name(status_code: int) -> str:
    if status_code in _CODES:
        return _CODES[status_code]
    return "internal_error" if 500 <= status_code < 600 else "error"


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _reply(
    request: Request,
    status_code: int,
    message: str,
    field_errors: Optional[List[Dict[str, str]]] = None,
) -> JSONResponse:
    content = error_envelope(
        code=status_code_name(status_code),
        message=message,
        err_type="server_error" if status_code >= 500 else "client_error",
        request_id=_request_id(request),
        field_errors=field_errors,
    )
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, HTTPException):
        return await exception_handler(request, exc)
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _reply(request, exc.status_code, detail)


async def chess_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Rules-core errors: conflicts are 409, the rest are bad requests."""
    code = status.HTTP_409_CONFLICT if isinstance(exc, _CONFLICTS) else status.HTTP_400_BAD_REQUEST
    return _reply(request, code, str(exc))


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return await http_exception_handler(request, exc)
    if isinstance(exc, ChessError):
        return await chess_error_handler(request, exc)
    logger.exception("Unhandled exception", extra={"request_id": _request_id(request)})
    return _reply(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    field_errors: List[Dict[str, str]] = []
    if isinstance(exc, RequestValidationError):
        for err in exc.errors():
            field_errors.append(
                {
                    "field": ".".join(str(p) for p in err.get("loc", ()) if p is not None),
                    "code": err.get("type", "value_error"),
                    "message": err.get("msg", "invalid value"),
                }
            )
    return _reply(request, HTTP_422, "Validation error", field_errors or None)


def install_error_handlers(app: FastAPI) -> None:
    """Route every failure through the structured envelope."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ChessError, chess_error_handler)
    app.add_exception_handler(Exception, exception_handler)
