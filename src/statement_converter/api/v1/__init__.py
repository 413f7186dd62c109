"""API version 1 routes."""

from fastapi import APIRouter

from statement_converter.api.v1 import convert, health

router = APIRouter(prefix="/api")

# Include routers
router.include_router(health.router)
router.include_router(convert.router)
