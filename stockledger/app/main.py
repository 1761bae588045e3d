import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from stockledger.app.api.v1.router import router as v1_router
from stockledger.app.config import get_settings
from stockledger.services.errors import LedgerError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "NotFound": 404,
    "ProductNotFound": 404,
    "EmptyOrder": 400,
    "InsufficientStock": 400,
    "Forbidden": 403,
    "InvalidState": 409,
    "InvalidTransition": 409,
    "Conflict": 409,
}

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Stock Ledger", version="0.1.0")
app.include_router(v1_router, prefix="/v1")


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = STATUS_BY_KIND.get(exc.kind, 400)
    logger.info("%s %s -> %s %s", request.method, request.url.path, status_code, exc.kind)
    return JSONResponse(
        status_code=status_code,
        content={"kind": exc.kind, "message": exc.message, "details": exc.details},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    # Unique constraints lost to a concurrent writer (SKU, order/PO numbers)
    logger.warning("%s %s -> integrity error: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=409,
        content={"kind": "Conflict", "message": "Conflicting write, please retry", "details": {}},
    )
