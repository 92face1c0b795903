from __future__ import annotations

from typing import Any, Dict

from core.errors import BAD_REQUEST, UNKNOWN_COMPONENT

STATUS_BY_ERROR_NAME = {
    UNKNOWN_COMPONENT: 404,
    BAD_REQUEST: 400,
}


def failure(message: str, code: int = 400, **details: Any) -> Dict[str, Any]:
    out = {"status": "error", "message": message, "code": code}
    if details:
        out["details"] = details
    return out


def error_response(err: BaseException) -> Dict[str, Any]:
    """Map an invocation error to an error envelope carrying the error `name`."""
    name = getattr(err, "name", None) or type(err).__name__
    code = STATUS_BY_ERROR_NAME.get(name, 500)
    return failure(str(err) if code != 500 else "Internal Server Error", code=code, name=name)
