"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from encounter_engine.config import get_settings
from encounter_engine.middleware.error_handler import setup_error_handlers
from encounter_engine.api.routes import tactical_encounters

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
request_logger = logging.getLogger("encounter_engine.requests")

VERSION = "0.1.0"

app = FastAPI(
    title="Tactical Encounter Engine",
    description="Procedural D&D 5e tactical combat encounter generation",
    version=VERSION,
)


# Middleware to log ALL requests
@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_logger.debug(f"{request.method} {request.url.path}")
    try:
        response = await call_next(request)
        request_logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response
    except Exception as e:
        request_logger.error(f"{request.method} {request.url.path} -> {type(e).__name__}: {e}")
        raise

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


setup_error_handlers(app, debug=settings.DEBUG)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "online", "service": "Tactical Encounter Engine", "version": VERSION}


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "debug_mode": settings.DEBUG,
        "feet_per_square": settings.FEET_PER_SQUARE,
    }


# Routes
app.include_router(tactical_encounters.router, prefix="/api", tags=["tactical_encounters"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("encounter_engine.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
