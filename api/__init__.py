"""
Telesales CRM - FastAPI application

Usage:
    uvicorn api:create_app --factory
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import settings
from api import agents, auth, calls, dashboard, health, products, transactions
from db.connection import create_tables, dispose_engine
from errors import CrmError, UnexpectedError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup, release the pool on shutdown."""
    await create_tables()
    logger.info("Telesales CRM is starting up")
    yield
    await dispose_engine()
    logger.info("Telesales CRM is shutting down")


async def _crm_error(request: Request, exc: CrmError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid request data", "errors": errors})


async def _unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=UnexpectedError().to_dict())


def create_app(lifespan_handler=lifespan) -> FastAPI:
    app = FastAPI(
        title="Telesales CRM",
        description="Call confirmation, upsell tracking and agent performance API",
        version="0.1.0",
        lifespan=lifespan_handler,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CrmError, _crm_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unexpected_error)

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(products.router, prefix="/api/products", tags=["Products"])
    app.include_router(calls.router, prefix="/api/calls", tags=["Calls"])
    app.include_router(transactions.router, prefix="/api/transactions", tags=["Transactions"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
    app.include_router(agents.router, prefix="/api/agents", tags=["Agents"])
    return app
