import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401
from .config import CLIENT_URL
from .database import Base, SessionLocal, engine
from .domain.accounts import router as accounts_router
from .domain.appointments import router as appointments_router
from .domain.catalog import fabrics_router, styles_router
from .domain.measurements import router as measurements_router
from .domain.orders import router as orders_router
from .routes.currency import router as currency_router
from .routes.notifications import router as notifications_router
from .services.job_queue import JobQueue
from .services.order_scheduler import reschedule_all_notifications
from .services.payment_service import PaymentGatewayError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)


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

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()  # Connection test
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - rate limited routes will answer 503: {e}")

    app.state.job_queue = None
    try:
        app.state.job_queue = await JobQueue.connect()
        logger.info("Job queue connected")
    except Exception as e:
        logger.error(f"❌ Job queue unavailable - e-mail will be sent inline and no jobs scheduled: {e}")

    if app.state.job_queue is not None:
        db = SessionLocal()
        try:
            await reschedule_all_notifications(db, app.state.job_queue)
        finally:
            db.close()

    yield

    logger.info("Application shutting down...")
    if app.state.job_queue is not None:
        await app.state.job_queue.close()


app = FastAPI(title="SyberTailor API", version="1.0.0", lifespan=lifespan)


def _field_path(loc) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI puts first
    parts = [str(part) for part in loc]
    if parts and parts[0] in ("body", "query", "path", "header", "cookie", "form"):
        parts = parts[1:]
    return ".".join(parts) or "request"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Validation failures answer 400 with one message per field"""
    errors = {}
    for error in exc.errors():
        errors.setdefault(_field_path(error.get("loc", ())), error.get("msg", "Invalid value"))

    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(PaymentGatewayError)
async def payment_gateway_exception_handler(request: Request, exc: PaymentGatewayError):
    logger.error(f"Payment gateway failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# Cookies need an explicit origin with credentials
ALLOWED_ORIGINS = [origin.strip() for origin in CLIENT_URL.split(",") if origin.strip()]
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(accounts_router)
app.include_router(styles_router)
app.include_router(fabrics_router)
app.include_router(measurements_router)
app.include_router(orders_router)
app.include_router(appointments_router)
app.include_router(notifications_router)
app.include_router(currency_router)


@app.get("/")
def root():
    return {"message": "SyberTailor API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Check Redis connectivity for monitoring"""
    try:
        from .rate_limiter import get_redis_client

        redis_client = get_redis_client()

        start_time = time.time()
        redis_client.ping()
        response_time = (time.time() - start_time) * 1000

        info = redis_client.info()

        return {
            "status": "healthy",
            "redis": {
                "connected": True,
                "response_time_ms": round(response_time, 2),
                "version": info.get("redis_version", "unknown"),
                "used_memory_human": info.get("used_memory_human", "unknown"),
                "connected_clients": info.get("connected_clients", 0),
            },
        }
    except Exception as e:
        return {"status": "unhealthy", "redis": {"connected": False, "error": str(e)}}
