import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notetaker.api.auth_router import router as auth_router
from notetaker.api.config import configure_logging, get_settings
from notetaker.api.database import init_db
from notetaker.api.errors import NotesError, ValidationFailed
from notetaker.api.notes_router import router as notes_router
from notetaker.api.schemas import HealthResponse

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title="Notetaker API",
    description="Personal notes with tags and favorites, JWT/Google auth, and migration of device-local notes.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Health", "description": "Service health and status."},
        {"name": "Auth", "description": "Registration, login, Google sign-in and password reset."},
        {"name": "Notes", "description": "CRUD, search and local-note conversion."},
    ],
)

# CORS setup - allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    level = logging.ERROR if response.status_code >= 400 else logging.INFO
    logger.log(
        level,
        "%s %s - %s (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


# -------- Error handlers --------

@app.exception_handler(NotesError)
async def notes_error_handler(request: Request, exc: NotesError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    failure = ValidationFailed(details)
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Something went wrong"})


# PUBLIC_INTERFACE
@app.get("/health", response_model=HealthResponse, tags=["Health"], summary="Health Check")
def health_check():
    """
    Health check endpoint.

    Returns:
        JSON object with service status and server time.
    """
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))


app.include_router(auth_router)
app.include_router(notes_router)


@app.on_event("startup")
def on_startup():
    configure_logging(settings.log_level)
    init_db()
