"""
FastAPI binding for the shield.

Maps an HTTP request onto a procedure call: the procedure path comes from
the matched route, the input from path and query parameters, and denials
are rendered as the standard ErrorResponse body.
"""

import inspect
from typing import Any, Callable, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.errors import PROTOCOL_ERROR_STATUS, ProtocolError, ShieldError
from shared.logging import get_logger
from ..middleware.shield import Shield
from ..rules.models import Path

logger = get_logger("shield.fastapi")


def procedure_path(request: Request) -> Path:
    """Procedure path for the route that matched ``request``.

    A dotted route name (``name="users.profile.get"``) wins; otherwise the
    static segments of the route template are used, path parameters excluded.
    """
    route = request.scope.get("route")
    name = getattr(route, "name", None)
    if name and "." in name:
        return tuple(name.split("."))

    template = getattr(route, "path", None) or request.url.path
    return tuple(
        segment for segment in template.strip("/").split("/")
        if segment and not segment.startswith("{")
    )


def default_context(request: Request) -> Dict[str, Any]:
    """Context built from what authentication left on ``request.state``."""
    return {"user_info": getattr(request.state, "user_info", None)}


class ShieldDependency:
    """FastAPI dependency authorizing the current route.

    Usage::

        guard = ShieldDependency(permissions)

        @app.get("/users/profile", name="users.profile.get")
        async def get_profile(ctx=Depends(guard)):
            ...

    The endpoint receives the context the shield was called with.
    """

    def __init__(self, shield: Shield,
                 context_getter: Callable[[Request], Any] = default_context):
        self.shield = shield
        self.context_getter = context_getter

    async def __call__(self, request: Request) -> Any:
        context = self.context_getter(request)
        if inspect.isawaitable(context):
            context = await context

        input_data = dict(request.query_params)
        input_data.update(request.path_params)

        return await self.shield(context, procedure_path(request), input_data, lambda ctx: ctx)


def install_exception_handlers(app: FastAPI) -> None:
    """Render shield denials as JSON error responses."""

    @app.exception_handler(ProtocolError)
    async def protocol_error_handler(request: Request, exc: ProtocolError):
        """Handle denials tagged with a protocol code."""
        logger.warning("Request denied", code=exc.code, message=exc.message, details=exc.details)
        return JSONResponse(
            status_code=exc.status,
            content=exc.to_response().model_dump()
        )

    @app.exception_handler(ShieldError)
    async def shield_error_handler(request: Request, exc: ShieldError):
        """Handle plain shield denials."""
        logger.warning("Request denied", message=exc.message, details=exc.details)
        return JSONResponse(
            status_code=PROTOCOL_ERROR_STATUS["FORBIDDEN"],
            content=exc.to_response().model_dump()
        )
