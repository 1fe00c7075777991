"""
Response envelopes.

Every successful body is `{"status", "status_code", "message", "data"}`;
list endpoints add `pagination`.
"""

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(status_code: int, message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "status": "success",
                "status_code": status_code,
                "message": message,
                "data": data,
            }
        ),
    )


def paginated_response(message: str, data: Any, pagination: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content=jsonable_encoder(
            {
                "status": "success",
                "status_code": 200,
                "message": message,
                "data": data,
                "pagination": pagination,
            }
        ),
    )


def auth_response(
    status_code: int,
    message: str,
    access_token: str,
    refresh_token: str,
    data: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Login/refresh body: tokens next to the user profile."""
    return success_response(
        status_code=status_code,
        message=message,
        data={
            "accessToken": access_token,
            "refreshToken": refresh_token,
            "tokenType": "bearer",
            "user": data,
        },
    )


def pagination_meta(page: Dict[str, Any]) -> Dict[str, Any]:
    """Strip the items out of a `BaseModel.paginate` result."""
    return {key: value for key, value in page.items() if key != "items"}
