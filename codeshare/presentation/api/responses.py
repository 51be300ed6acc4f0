from typing import Any, Callable, Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse

from ...domain.errors import OperationResult

_STATUS_BY_ERROR_TYPE: Dict[str, int] = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "auth": status.HTTP_401_UNAUTHORIZED,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "storage": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(result: OperationResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    return _STATUS_BY_ERROR_TYPE.get(result.error_type or "", status.HTTP_500_INTERNAL_SERVER_ERROR)


def envelope(data: Any = None) -> Dict[str, Any]:
    return OperationResult.ok(data).to_dict()


def respond(
    result: OperationResult,
    serialize: Optional[Callable[[Any], Any]] = None,
    success_status: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Render a service result as the `{success, data, error}` envelope."""
    if not result.success:
        return JSONResponse(status_code=status_for(result), content=result.to_dict())
    data = result.data
    if serialize is not None and data is not None:
        data = serialize(data)
    return JSONResponse(status_code=success_status, content=OperationResult.ok(data).to_dict())


def error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=OperationResult.fail(message).to_dict(),
        headers=headers,
    )
