# ------------------------------ IMPORTS ------------------------------
import os
import signal
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
import logging

from core.database import init_db
from core.config.settings import settings
from core.services.activity import ActivityMonitor, create_scheduler
from core.utils.api_helpers import create_error_response
from buyee.routes import router as buyee_router, buyee_service

# ------------------------------ SETUP ------------------------------
load_dotenv()
logger = logging.getLogger("buyee_bidder")

activity_monitor = ActivityMonitor(
    timeout_seconds=settings.server.inactivity_timeout_minutes * 60,
    check_interval_seconds=settings.server.inactivity_check_seconds,
)

async def shutdown_when_idle() -> None:
    """Close the browser and ask the server process to stop."""
    await buyee_service.shutdown()
    os.kill(os.getpid(), signal.SIGTERM)

# ------------------------------ LIFESPAN ------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    try:
        logger.info("Initializing database...")
        init_db()
        logger.info("Database initialized successfully\n")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}\n")

    scheduler = create_scheduler(
        activity_monitor,
        on_idle=shutdown_when_idle,
        sweep=buyee_service.sweep_search_contexts,
        sweep_interval_seconds=settings.search.sweep_interval_seconds,
    )
    scheduler.start()
    activity_monitor.touch()
    yield

    scheduler.shutdown(wait=False)
    await buyee_service.shutdown()
    logger.info("Browser closed, shutdown complete")

# ------------------------------ APP ------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    description="Backend API for Buyee search and bidding automation",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# ------------------------------ MIDDLEWARE ------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.get_origins_list(),
    allow_credentials=settings.cors.credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def record_activity(request: Request, call_next):
    activity_monitor.touch()
    return await call_next(request)

# ------------------------------ ERROR HANDLERS ------------------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=create_error_response(str(exc.detail)))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=create_error_response(message))

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=create_error_response("Internal server error"))

# ------------------------------ ROUTERS ------------------------------
app.include_router(buyee_router, tags=["Buyee"])

# ------------------------------ HEALTH ENDPOINTS ------------------------------
@app.get("/", tags=["Health"])
async def root():
    return {"message": settings.APP_NAME, "status": "running"}

@app.get("/health", tags=["Health"])
async def health():
    return {"status": "healthy", "browserRunning": buyee_service.browser_manager.is_running}

# ------------------------------ MAIN ------------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.server.host, port=settings.server.port, reload=settings.server.debug)

# ------------------------------ END OF FILE ------------------------------
