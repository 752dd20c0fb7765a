"""
Crease - Live Cricket Scoring API
"""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings, configure_logging
from app.database import init_db
from app.engine.errors import ScoringError
from app.api.match import router as match_router, scoring_service

configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Crease",
    description="Live Cricket Scoring API",
    version="0.1.0",
)

# CORS origins - local dev servers plus CORS_ORIGINS from the environment
default_origins = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]
default_origins.extend(settings.CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=default_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(match_router, prefix="/api")


@app.exception_handler(ScoringError)
def scoring_error_handler(request: Request, exc: ScoringError):
    body = {"detail": exc.message, "error": exc.name}
    if getattr(exc, "errors", None):
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body)


@app.on_event("startup")
def startup_event():
    """Initialize database on startup"""
    init_db()
    logger.info("Database ready at %s", settings.DATABASE_PATH)


@app.on_event("shutdown")
def shutdown_event():
    """Deliver queued notifications before exiting"""
    scoring_service.broadcaster.close()


@app.get("/")
def root():
    """Health check endpoint"""
    return {
        "name": "Crease API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/api/health")
def health_check():
    """API health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
