from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api import admin, public
from app.core.config import settings
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# Get logger for this module
logger = logging.getLogger(__name__)
logger.info("Starting membership API")


app = FastAPI(
    title="Membership API",
    description="Membership applications, bureau roles and roster management",
    version="1.0.0",
    debug=settings.DEBUG,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# Include routers
app.include_router(public.router)
app.include_router(admin.router)


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Membership API", "version": "1.0.0"}


@app.get("/api/health")
def health_check():
    """Health check: API and database connectivity."""
    from app.db.base import get_db
    from sqlalchemy import text
    from datetime import datetime, timezone

    db_status = "unreachable"
    db_error = None
    db_gen = get_db()
    try:
        db = next(db_gen)
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_error = str(e)
    finally:
        db_gen.close()

    status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": status,
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "ok",
            "database": db_status,
        },
        **({"database_error": db_error} if db_error else {})
    }
