"""
API routes for the lease finance calculator.
"""

from fastapi import APIRouter

from lease_finance.api import calculations, leasing, metrics

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
router.include_router(metrics.router, prefix="/metrics", tags=["metrics"])
router.include_router(leasing.router, prefix="/leasing", tags=["leasing"])
