"""
FastAPI Application Entry Point
Main application setup and route registration
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from certicraft import __version__
from certicraft.config import settings
from certicraft.database import connect_db, disconnect_db
from certicraft.services.email_service import build_relay
from certicraft.services.storage_service import build_content_store

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Certificate generation, delivery and verification for events",
    version=__version__,
    debug=settings.DEBUG
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, settings.APP_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup event
@app.on_event("startup")
async def startup():
    """Connect the database and build the content store and email relay"""
    await connect_db()
    app.state.content_store = build_content_store()
    app.state.relay = build_relay()
    logger.info("%s started in %s mode", settings.APP_NAME, settings.APP_ENV)


# Shutdown event
@app.on_event("shutdown")
async def shutdown():
    """Run on application shutdown"""
    await disconnect_db()
    logger.info("Shutdown complete")


# Health check endpoint
@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": __version__
    }


# Import and include routers
from certicraft.routes import certificates, public, templates

app.include_router(certificates.router, prefix="/certificates", tags=["Certificates"])
app.include_router(public.router, prefix="/certificates", tags=["Public"])
app.include_router(templates.router, prefix="/templates", tags=["Templates"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "certicraft.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
