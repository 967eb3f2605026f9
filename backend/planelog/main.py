import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from planelog.core.config import settings
from planelog.core.database import close_db, init_db
from planelog.core.errors import ServiceError, ValidationError
from planelog.core.logging_config import setup_logging
from planelog.core.scheduler import start_scheduler, stop_scheduler
from planelog.storage.local_storage import storage
from planelog.api.routes import auth, health, planes, profile

setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: connect to the store (fatal on failure), start the scheduler.
    Shutdown: stop the scheduler, release the connection pool.
    """
    init_db()
    start_scheduler()
    logger.info("Planelog API started")
    yield
    stop_scheduler()
    close_db()
    logger.info("Planelog API stopped")


app = FastAPI(
    title="Planelog API",
    description="Share plane sightings by airport and airline",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are a client error like any other missing field
    errors = exc.errors()
    message = errors[0].get("msg") if errors else ValidationError.message
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Database error occurred"})


app.include_router(auth.router, prefix="/api")
app.include_router(profile.router, prefix="/api")
app.include_router(planes.router, prefix="/api")
app.include_router(health.router, prefix="/api")

# Uploaded images are served straight from disk
app.mount(storage.url_prefix, StaticFiles(directory=storage.upload_dir), name="uploads")


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {"message": "Planelog API", "version": VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
