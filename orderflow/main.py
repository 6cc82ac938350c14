from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from orderflow.api.routes_clients import router as clients_router
from orderflow.api.routes_items import router as items_router
from orderflow.api.routes_orders import router as orders_router
from orderflow.api.routes_portal import router as portal_router
from orderflow.api.routes_reports import router as reports_router
from orderflow.api.routes_session import router as session_router
from orderflow.core.config import get_settings
from orderflow.core.logging import configure_logging
from orderflow.domain.errors import (
    ConfirmationRequiredError,
    MergeInconsistencyError,
    NotFoundError,
    OrderFlowError,
    PreconditionError,
    ValidationError,
)
from orderflow.persistence.pg import init_db

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    logger.info("%s ready: env=%s admins=%s", settings.app_name, settings.env, len(settings.admin_emails))


def _error_response(status_code: int, exc: OrderFlowError, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": exc.error_code, **extra},
    )


@app.exception_handler(MergeInconsistencyError)
async def merge_inconsistency_handler(_: Request, exc: MergeInconsistencyError):
    return _error_response(
        500,
        exc,
        merged_order_id=exc.merged_order_id,
        remaining_source_ids=exc.remaining_source_ids,
    )


@app.exception_handler(OrderFlowError)
async def orderflow_error_handler(_: Request, exc: OrderFlowError):
    if isinstance(exc, NotFoundError):
        return _error_response(404, exc)
    if isinstance(exc, ValidationError):
        return _error_response(422, exc)
    if isinstance(exc, ConfirmationRequiredError):
        return _error_response(428, exc)
    if isinstance(exc, PreconditionError):
        return _error_response(409, exc)
    logger.error("unhandled domain error: %s", exc)
    return _error_response(500, exc)


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(session_router)
app.include_router(clients_router)
app.include_router(items_router)
app.include_router(orders_router)
app.include_router(reports_router)
app.include_router(portal_router)
