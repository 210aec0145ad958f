"""
Standard API Response Envelope

Every endpoint answers with ``{success, message, data?}``; the HTTP status
mirrors ``success``.
"""

from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Response envelope model (used for OpenAPI docs)"""
    success: bool
    message: str
    data: Optional[Any] = None


def success_response(
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Build a successful envelope response"""
    content = {"success": True, "message": message}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)


def error_response(
    message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    data: Any = None,
) -> JSONResponse:
    """Build a failed envelope response"""
    content = {"success": False, "message": message}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)


__all__ = ["ApiResponse", "success_response", "error_response"]
