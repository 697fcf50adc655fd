import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_appointment,  # noqa: F401
)
from .config import CORS_ORIGIN
from .database import Base, engine
from .domain.appointments.errors import AppointmentError, Unavailable, ValidationError
from .domain.appointments.router import router as appointments_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Real Estate Simplified API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in CORS_ORIGIN.split(",")],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(AppointmentError)
async def appointment_error_handler(request: Request, exc: AppointmentError):
    """Business-rule failures become structured {success, kind, message} bodies"""
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.kind} - {exc.message}")
    else:
        logger.info(f"ℹ️ {request.method} {request.url.path} rejected: {exc.kind} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is reported as a validation_error with the failing fields"""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    body = ValidationError().to_dict()
    body["errors"] = errors
    return JSONResponse(status_code=ValidationError.status_code, content=body)


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    """The store is unreachable or failed mid-statement; callers may retry reads"""
    logger.error(
        f"❌ Database unavailable during {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(status_code=Unavailable.status_code, content=Unavailable().to_dict())


@app.get("/api/health")
async def health_check():
    return {
        "success": True,
        "message": "Real Estate Simplified API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(appointments_router)
