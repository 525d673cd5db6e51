"""FastAPI application entry point.

This module wires together the API routers, configures logging,
middleware and error rendering, and exposes the ASGI application object
used by the server.
"""

import os
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from giftpay.routes import (
    auth,
    users,
    redemptions,
    withdrawals,
    admin,
    config,
)
from giftpay.database import create_db_and_tables
from giftpay.errors import GiftPayError, InternalError, ValidationError

# Basic logging configuration.  The log level can be controlled with an
# environment variable so deployments can adjust verbosity without code
# changes.
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, LOG_LEVEL))
logger = logging.getLogger(__name__)

app = FastAPI(title="GiftPay")

# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    """Create any missing tables."""

    await create_db_and_tables()


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(redemptions.router)
app.include_router(withdrawals.router)
app.include_router(admin.router)
app.include_router(config.router)


@app.get("/")
async def read_root():
    return {"message": "Welcome to GiftPay API"}


@app.exception_handler(GiftPayError)
async def giftpay_exception_handler(request: Request, exc: GiftPayError):
    """Render business-rule and access-control failures as JSON."""
    if exc.status_code >= 500:
        logger.error("Request %s failed: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get a 400 with per-field details."""
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    body = ValidationError(errors=jsonable_encoder(errors)).to_dict()
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": "http_error", "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler that logs the stack trace once."""
    logger.exception("Unhandled error during request %s", request.url.path)
    return JSONResponse(status_code=500, content=InternalError().to_dict())
