import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from wallethistory.api.sessions import router as sessions_router
from wallethistory.container import Container
from wallethistory.db.session import create_tables
from wallethistory.exceptions import (
    AdapterError,
    InsufficientFunds,
    InvalidParams,
    SessionInactive,
)

logger = logging.getLogger("wallethistory.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    app.state.container = container
    await create_tables(container.engine())
    yield
    await container.session_manager().close_all()
    await container.http_client().close()
    engine = container.engine()
    await engine.dispose()


app = FastAPI(title="Wallet History", version="0.1.0", lifespan=lifespan)


@app.exception_handler(SessionInactive)
async def session_inactive_handler(request: Request, exc: SessionInactive):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidParams)
@app.exception_handler(InsufficientFunds)
async def rejected_payload_handler(request: Request, exc: AdapterError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(AdapterError)
async def adapter_error_handler(request: Request, exc: AdapterError):
    logger.warning("Upstream failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
