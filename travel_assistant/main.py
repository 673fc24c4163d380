# Role: FastAPI app bootstrap. Loads environment config early, registers routers, maps the error taxonomy to
# short JSON error bodies, and exposes health/docs endpoints.

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import travel_assistant.config
travel_assistant.config.load_env()

from travel_assistant.api.chat import router as chat_router
from travel_assistant.api.conversations import router as conversations_router
from travel_assistant.core.errors import ProviderError, ValidationError

app = FastAPI(title="Travel Assistant API", version="0.2.0")
app.include_router(chat_router)
app.include_router(conversations_router)


@app.exception_handler(ValidationError)
def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    # Key line: caller's fault; no retry.
    return JSONResponse(status_code=400, content={"error": str(exc) or "Message is required"})


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Key line: malformed bodies get the same short 400 as an empty message (no pydantic internals leaked).
    return JSONResponse(status_code=400, content={"error": "Message is required"})


@app.exception_handler(ProviderError)
def handle_provider_error(request: Request, exc: ProviderError) -> JSONResponse:
    if travel_assistant.config.DEBUG:
        print("\n!!! PROVIDER ERROR !!!")
        print(repr(exc))
        print("!!! END ERROR !!!\n")
    return JSONResponse(status_code=500, content={"error": "Failed to process message"})


@app.exception_handler(StarletteHTTPException)
def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.get("/")
def root() -> dict:
    # Role: quick discoverability for clients (where are docs/health).
    return {
        "message": "Travel Assistant API is running",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
