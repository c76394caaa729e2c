"""Main FastAPI application"""
import os
import logging
import logging.config
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from routes import router as api_router
from services.expenses_service import ExpenseStore
from utils.dates import load_timezone
from utils.rate_limit import limiter

from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

load_dotenv() # Searches current dir and parents

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Unified Logging Configuration with Rich ---
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "default": {
            "class": "rich.logging.RichHandler",
            "formatter": "default",
            "level": "DEBUG",
            "rich_tracebacks": True,
            "show_time": True,
            "show_path": False,
            "log_time_format": "%Y-%m-%d %H:%M:%S",
            "markup": False,
        },
    },
    "loggers": {
        "uvicorn": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "uvicorn.error": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "uvicorn.access": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "": { # Root logger for our application
            "handlers": ["default"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}

logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger(__name__)

EXPENSES_TIMEZONE = load_timezone(os.getenv("EXPENSES_TIMEZONE", "UTC"))
MAX_REQUEST_SIZE = int(os.getenv("MAX_REQUEST_SIZE", str(64 * 1024)))
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
STATIC_DIR = os.getenv("STATIC_DIR", "public")

# --- Middleware for Request Size Limit ---
class LimitRequestSizeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        content_length_header = request.headers.get("content-length")
        if content_length_header:
            try:
                content_length = int(content_length_header)
            except ValueError:
                logger.warning("Request rejected: Invalid Content-Length header.")
                return JSONResponse({"message": "Invalid Content-Length header."}, status_code=400)
            if content_length > MAX_REQUEST_SIZE:
                logger.warning(f"Request rejected: body size {content_length} exceeds limit {MAX_REQUEST_SIZE}.")
                return JSONResponse({"message": f"Maximum request size ({MAX_REQUEST_SIZE} bytes) exceeded."}, status_code=413)
        return await call_next(request)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: a fresh, empty store for the lifetime of the process
    logger.info(f"Initializing in-memory expense store (day boundaries in {EXPENSES_TIMEZONE}).")
    app.state.expense_store = ExpenseStore()
    app.state.expenses_timezone = EXPENSES_TIMEZONE

    yield # Application runs here

    # Shutdown: nothing is persisted
    logger.info(f"Discarding expense store with {len(app.state.expense_store)} expenses.")
    app.state.expense_store = None

app = FastAPI(
    title="Expense Tracker API",
    description="API for recording expenses and reviewing them day by day.",
    version="0.1.0",
    lifespan=lifespan
)

# --- Error Handlers: every error body is {"message": ...} ---
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'][1:]) or error['loc'][0]}: {error['msg']}"
        for error in errors
    )
    logger.warning(f"Invalid payload for {request.method} {request.url.path}: {details}")
    return JSONResponse(
        status_code=400,
        content={"message": f"Invalid data: {details}", "errors": jsonable_encoder(errors)},
    )

def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {exc.detail}")
    return JSONResponse(status_code=429, content={"message": f"Rate limit exceeded: {exc.detail}"})

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# --- Middleware (Order Matters) ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LimitRequestSizeMiddleware)

app.include_router(api_router, prefix="/api", tags=["api"])

# Mount static files directory (MUST be after API router)
if os.path.isdir(STATIC_DIR):
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
else:
    logger.info(f"Static directory '{STATIC_DIR}' not found; serving the API only.")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )
