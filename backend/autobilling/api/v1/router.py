"""
API v1 router that aggregates all endpoint routers.
"""

from fastapi import APIRouter

from autobilling.api.v1.endpoints import (
    health,
    auto_billing,
    service_payments,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(
    auto_billing.router,
    prefix="/auto-billing",
    tags=["auto-billing"],
)
api_router.include_router(
    service_payments.router,
    prefix="/auto-billing",
    tags=["service-payments"],
)
