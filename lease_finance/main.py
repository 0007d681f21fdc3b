"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI

from lease_finance import __version__
from lease_finance.config import get_settings
from lease_finance.api import router as api_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Loan amortization, investor allocation and leasing calculator",
    version=__version__,
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": __version__}
