"""
Enquiry Intake API - Main Application.

FastAPI application with CORS enabled for the CRM front end.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

__version__ = "0.1.0"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Enquiry Intake API",
    description="Website form intake, deduplication and lead routing for the real estate CRM",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins to the CRM front end's domain in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "enquiry-intake-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Enquiry Intake API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import enquiries, routing, sync, webhooks

app.include_router(webhooks.router, prefix="/api/v1", tags=["Webhooks"])
app.include_router(sync.router, prefix="/api/v1", tags=["Sync"])
app.include_router(enquiries.router, prefix="/api/v1", tags=["Enquiries"])
app.include_router(routing.router, prefix="/api/v1", tags=["Routing"])
