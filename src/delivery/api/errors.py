"""HTTP mapping for delivery errors.

Protean's own handlers answer ``ValidationError`` with 400 and
``ObjectNotFoundError`` with 404; the lifecycle and dispatch errors are
added on top.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from delivery.exceptions import AssignmentFailed, ConflictError, IllegalTransitionError, UnauthorizedError


async def _unauthorized(request: Request, exc: UnauthorizedError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=403, content={"detail": str(exc)})


async def _illegal_transition(request: Request, exc: IllegalTransitionError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=409, content={"detail": exc.messages})


async def _assignment_failed(request: Request, exc: AssignmentFailed) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=409, content={"detail": exc.reason, "order_id": exc.order_id})


async def _conflict(request: Request, exc: ConflictError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=409, content={"detail": str(exc), "order_id": exc.order_id})


def register_delivery_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(UnauthorizedError, _unauthorized)
    app.add_exception_handler(IllegalTransitionError, _illegal_transition)
    app.add_exception_handler(AssignmentFailed, _assignment_failed)
    app.add_exception_handler(ConflictError, _conflict)
