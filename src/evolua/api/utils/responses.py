from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..schemas.common import ApiResponse, ErrorResponse


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or ""


def ok(request: Request, data: Any = None, message: str = "") -> ApiResponse[Any]:
    req_id = _request_id(request)
    if req_id:
        return ApiResponse(success=True, message=message, request_id=req_id, data=data)
    return ApiResponse(success=True, message=message, data=data)


def fail(
    request: Request,
    error: str,
    message: str,
    details: Optional[dict] = None,
    status_code: int = 400,
    headers: Optional[dict] = None,
) -> JSONResponse:
    req_id = _request_id(request)
    body = ErrorResponse(error=error, message=message, details=details or {})
    if req_id:
        body.request_id = req_id
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)
