"""
Auto-billing controller.
"""

from datetime import date
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autobilling.controllers.base_controller import BaseController
from autobilling.services.recurring_payment_service import RecurringPaymentService
from autobilling.schemas.billing import RunResponse


class AutoBillingController(BaseController):
    """Controller for auto-billing runs."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        recurring_payment_service: Optional[RecurringPaymentService] = None,
    ):
        self.recurring_payment_service = recurring_payment_service or RecurringPaymentService(session_maker)

    async def run(self, today: Optional[date] = None) -> RunResponse:
        """Run one auto-billing pass and wrap the report for the trigger."""
        results = await self.recurring_payment_service.run_once(self.resolve_run_date(today))
        if results.processed == 0:
            message = "No services due for billing"
        else:
            message = f"Processed {results.processed} services"
        return RunResponse(status="success", message=message, results=results)
