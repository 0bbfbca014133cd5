"""
Service payment controller.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from autobilling.controllers.base_controller import BaseController
from autobilling.services.service_payment_service import ServicePaymentService
from autobilling.models.service_payment import PaymentStatus
from autobilling.schemas.service_payment import (
    PaymentDetailResponse,
    PaymentListResponse,
    PaymentSummaryResponse,
    PaymentIntegrityResponse,
)


class ServicePaymentController(BaseController):
    """Controller for stakeholder service payment reads."""

    def __init__(self, session: AsyncSession):
        self.payment_service = ServicePaymentService(session)

    async def get_payment(self, payment_id: int) -> Optional[PaymentDetailResponse]:
        """Get payment by ID."""
        return await self.payment_service.get_payment(payment_id)

    async def list_payments(
        self,
        skip: int = 0,
        limit: int = 100,
        service_id: Optional[int] = None,
        stakeholder_id: Optional[int] = None,
        status: Optional[PaymentStatus] = None,
    ) -> PaymentListResponse:
        """List payments."""
        payments, total = await self.payment_service.list_payments(
            skip=skip,
            limit=limit,
            service_id=service_id,
            stakeholder_id=stakeholder_id,
            status=status,
        )
        return PaymentListResponse(items=payments, total=total)

    async def get_payment_summary(
        self,
        service_id: Optional[int] = None,
        stakeholder_id: Optional[int] = None,
    ) -> PaymentSummaryResponse:
        """Get payment summary."""
        return await self.payment_service.get_payment_summary(
            service_id=service_id,
            stakeholder_id=stakeholder_id,
        )

    async def check_integrity(self, limit: int = 100) -> PaymentIntegrityResponse:
        """List payments stored without line items."""
        return await self.payment_service.find_payments_missing_line_items(limit=limit)
