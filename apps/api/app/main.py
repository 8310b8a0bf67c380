from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

from app.api.compat import router as compat_router
from app.api.public.chat import router as public_chat_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.core.rate_limit import configure_rate_limiter, limiter
from app.services.compat.error_policy import (
    build_error_payload,
    build_http_error_payload,
    build_unexpected_error_payload,
)


settings = get_settings()
configure_logging(settings)
logger = structlog.get_logger("app")
logger.info("app_configured", env=settings.env, model=settings.groq_model)

app = FastAPI(
    title="Learning Forge API",
    version="0.1.0",
    description="Turns learner goals into roadmaps, lessons, quizzes and forecasts via Groq",
)

configure_rate_limiter(app)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_trace_id(request: Request, call_next):
    trace_id = request.headers.get("x-trace-id") or uuid4().hex
    bind_contextvars(trace_id=trace_id, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        unbind_contextvars("trace_id", "path")
    response.headers["x-trace-id"] = trace_id
    return response


@app.get("/health")
@limiter.exempt
def health_check() -> dict[str, object]:
    return {"ok": True, "model": settings.groq_model}


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=build_http_error_payload(exc))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return JSONResponse(status_code=400, content=build_error_payload(message))


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unexpected_server_error", error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content=build_unexpected_error_payload())


app.include_router(compat_router)
app.include_router(public_chat_router)
