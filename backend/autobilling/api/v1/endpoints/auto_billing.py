"""
Auto-billing API endpoints.
The run endpoint is the trigger called by the external scheduler (cron).
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autobilling.core.rate_limit import limiter, RUN_TRIGGER_LIMIT
from autobilling.db.session import get_sessionmaker
from autobilling.controllers.auto_billing_controller import AutoBillingController
from autobilling.schemas.billing import RunResponse, RunErrorResponse

router = APIRouter()


@router.api_route(
    "/run",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    response_model=RunResponse,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": RunErrorResponse}},
)
@limiter.limit(RUN_TRIGGER_LIMIT)
async def run_auto_billing(
    request: Request,
    today: Optional[date] = Query(None, description="Run date, defaults to the server's current date"),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
):
    """
    Create pending payments for every incoming recurring service that is due.
    Any HTTP method triggers a run.
    If the due services cannot be loaded, BillingRunError reaches the global
    handler, which answers 500 with the run error body.
    """
    controller = AutoBillingController(session_maker)
    return await controller.run(today)
