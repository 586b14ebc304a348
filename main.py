"""
FastAPI Application Entry Point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config import API_VERSION, CORS_ORIGINS, DEBUG
from pizzadesk import __version__
from pizzadesk.api.v1.router import api_router
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.core.security import limiter
from pizzadesk.core.websocket_manager import ConnectionManager
from pizzadesk.database.session import init_db

logger = get_i18n_logger("pizzadesk")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    await init_db()
    logger.info("app.started", version=__version__, debug=DEBUG)
    yield
    logger.info("app.stopped")


# Initialize FastAPI application
app = FastAPI(
    title="PizzaDesk API",
    description="Order desk of a pizzeria: orders, customers, catalog, staff and live notifications",
    version=__version__,
    debug=DEBUG,
    lifespan=lifespan,
)

# Live notification channel, owned by the application
app.state.alert_sink = ConnectionManager()

# Rate limiting (login)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-New-Token"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are answered with 400, like every other invalid input"""
    logger.debug("error.validation", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("error.unhandled", path=request.url.path, error=repr(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


# Include API v1 router
app.include_router(api_router, prefix=f"/api/{API_VERSION}")


@app.get("/", status_code=status.HTTP_200_OK)
async def root():
    """Root endpoint"""
    return {
        "message": "PizzaDesk API is running",
        "version": __version__,
        "docs": "/docs"
    }


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
