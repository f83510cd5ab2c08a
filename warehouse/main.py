import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from warehouse.config import Settings, get_settings
from warehouse.core.errors import WarehouseError
from warehouse.core.logging import setup_logging
from warehouse.database import init_db
from warehouse.routers import (
    attendance_router,
    audit_router,
    health_router,
    ingest_router,
    master_router,
    opname_router,
    petty_cash_router,
    reports_router,
    stock_in_router,
    stock_out_router,
)

setup_logging()
settings: Settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    logger.info("Database schema ensured")
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


@app.exception_handler(WarehouseError)
async def _warehouse_error_handler(request: Request, exc: WarehouseError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(HTTPException)
async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    payload = {"code": f"http.{exc.status_code}", "detail": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    payload = {
        "code": "validation_error",
        "detail": "Request validation failed",
        "errors": jsonable_encoder(exc.errors()),
    }
    return JSONResponse(status_code=422, content=payload)


app.include_router(health_router)
app.include_router(master_router)
app.include_router(stock_in_router)
app.include_router(stock_out_router)
app.include_router(opname_router)
app.include_router(reports_router)
app.include_router(petty_cash_router)
app.include_router(attendance_router)
app.include_router(ingest_router)
app.include_router(audit_router)


__all__ = ["app"]
