import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .database.session import init_db
from .routers import auth, game
from .config import get_settings
from .dependencies import install_services
from .exceptions import CityGuessError, cityguess_error_handler
from .logging_setup import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events for the application."""
    # Startup: Configure logging and initialize database
    setup_logging(settings.LOG_LEVEL)
    await init_db()
    logger.info("City Guesser started")
    yield
    # Shutdown: nothing to release, the engine pool closes with the process


# Create FastAPI application
app = FastAPI(
    title="City Guesser",
    description="Guess where a US city is from its satellite image and climb the leaderboard",
    version="1.0.0",
    lifespan=lifespan
)

install_services(app, settings)
app.add_exception_handler(CityGuessError, cityguess_error_handler)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(game.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to City Guesser API",
        "docs": "/docs",
        "health": "ok"
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
