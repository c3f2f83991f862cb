from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .exceptions import (
    ConcurrencyConflictError,
    InventoryError,
    OrderNotFoundError,
    OrderValidationError,
    PersistenceError,
    StatusTransitionError,
)


def _dump(entries):
    return [entry.model_dump() for entry in entries]


async def validation_error_handler(request: Request, exc: OrderValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Order validation failed", "errors": _dump(exc.errors)},
    )

async def inventory_error_handler(request: Request, exc: InventoryError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": "Insufficient inventory",
            "errors": _dump(exc.errors),
            "warnings": _dump(exc.warnings),
        },
    )

async def status_transition_error_handler(request: Request, exc: StatusTransitionError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Status change not allowed", "errors": _dump(exc.errors)},
    )

async def concurrency_conflict_handler(request: Request, exc: ConcurrencyConflictError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

async def not_found_handler(request: Request, exc: OrderNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Order not found"})

async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Order store unavailable"},
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(OrderValidationError, validation_error_handler)
    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(StatusTransitionError, status_transition_error_handler)
    app.add_exception_handler(ConcurrencyConflictError, concurrency_conflict_handler)
    app.add_exception_handler(OrderNotFoundError, not_found_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
