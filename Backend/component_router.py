from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from config import get_settings
from core.component_registry import registry
from core.errors import InvocationError
from core.shell import ComponentShell
from utils.response import error_response

logger = logging.getLogger("component_router")
settings = get_settings()

# Auto-register components from config
registry.load(settings.components)


def build_router(shell: ComponentShell, prefix: str = "/components", timeout: float = 30.0) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["components"])

    @router.get("")
    async def list_components() -> Dict[str, Any]:
        return shell.list_metadata()

    @router.post("/{name}")
    async def invoke_component(name: str, body: Optional[Dict[str, Any]] = Body(default=None)):
        outcome: asyncio.Future = asyncio.get_running_loop().create_future()

        def callback(err, result=None):
            if not outcome.done():
                outcome.set_result((err, result))

        await shell.invoke_component_by_name(name, body, {"component_name": name}, callback)
        try:
            err, result = await asyncio.wait_for(outcome, timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Component {name} did not complete within {timeout}s")
            return JSONResponse(status_code=504, content={"status": "error", "message": "Component timed out", "code": 504})

        if err is None:
            return result
        if isinstance(err, ValidationError):
            err = InvocationError.bad_request(f"Invalid invocation request: {err.error_count()} error(s)", component=name)
        if not isinstance(err, InvocationError):
            logger.error(f"Component {name} failed: {err}")
        body_out = error_response(err)
        return JSONResponse(status_code=body_out["code"], content=body_out)

    return router


shell = ComponentShell({"version": settings.meta.sdk_version}, registry)
router = build_router(shell, prefix=settings.fastapi.url_prefix, timeout=settings.fastapi.invocation_timeout)
