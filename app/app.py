"""FastAPI application setup."""
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from routers import health, relay
from src.config.settings import get_settings
from src.relay.errors import ALLOWED_METHODS, InvalidRequest, MethodNotAllowed, RelayError

RELAY_PATHS = {"/api/relay", "/api/convert"}

app = FastAPI(
    title="Drive Relay API",
    description="Relay Google Drive files into the OpenAI Files API",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "{} {} failed code={} status={} stage={}",
        request.method,
        request.url.path,
        exc.code,
        exc.status_code,
        exc.stage,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidRequest("; ".join(err.get("msg", "invalid value") for err in exc.errors()))
    return await relay_error_handler(request, error)


@app.exception_handler(StarletteHTTPException)
async def starlette_http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code != 405:
        return await http_exception_handler(request, exc)
    if request.url.path in RELAY_PATHS:
        allow = ALLOWED_METHODS
    else:
        allow = (exc.headers or {}).get("Allow", ALLOWED_METHODS)
    error = MethodNotAllowed(f"{request.method} is not supported", allow=allow)
    return await relay_error_handler(request, error)


# Include routers
app.include_router(relay.router, prefix="/api", tags=["Relay"])
app.include_router(health.router, tags=["Health"])
