"""
Service payment service with read-side business logic.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from autobilling.services.base_service import BaseService
from autobilling.db.repositories.service_payment_repository import ServicePaymentRepository
from autobilling.models.service_payment import PaymentStatus
from autobilling.schemas.service_payment import (
    PaymentResponse,
    PaymentDetailResponse,
    PaymentSummaryResponse,
    PaymentIntegrityResponse,
)


class ServicePaymentService(BaseService):
    """Service for stakeholder service payment reads."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.payment_repo = ServicePaymentRepository(session)

    @staticmethod
    def _filters(
        service_id: Optional[int] = None,
        stakeholder_id: Optional[int] = None,
        status: Optional[PaymentStatus] = None,
    ) -> dict:
        filters = {}
        if service_id is not None:
            filters["service_id"] = service_id
        if stakeholder_id is not None:
            filters["stakeholder_id"] = stakeholder_id
        if status is not None:
            filters["status"] = PaymentStatus(status)
        return filters

    async def get_payment(self, payment_id: int) -> Optional[PaymentDetailResponse]:
        """Get payment by ID with line items."""
        payment = await self.payment_repo.get_with_line_items(payment_id)
        if not payment:
            return None
        return PaymentDetailResponse.model_validate(payment)

    async def list_payments(
        self,
        skip: int = 0,
        limit: int = 100,
        service_id: Optional[int] = None,
        stakeholder_id: Optional[int] = None,
        status: Optional[PaymentStatus] = None,
    ) -> tuple[List[PaymentResponse], int]:
        """List payments, optionally filtered by service, stakeholder or status."""
        filters = self._filters(service_id, stakeholder_id, status)
        payments = await self.payment_repo.list(skip=skip, limit=limit, **filters)
        total = await self.payment_repo.count(**filters)
        return [PaymentResponse.model_validate(p) for p in payments], total

    async def get_payment_summary(
        self,
        service_id: Optional[int] = None,
        stakeholder_id: Optional[int] = None,
    ) -> PaymentSummaryResponse:
        """Summarize payment totals, paid and pending amounts."""
        summary = await self.payment_repo.summarize(**self._filters(service_id, stakeholder_id))
        return PaymentSummaryResponse(
            total_payments=summary["total_payments"],
            total_amount=self.to_money(summary["total_amount"]),
            paid_amount=self.to_money(summary["paid_amount"]),
            pending_amount=self.to_money(summary["pending_amount"]),
        )

    async def find_payments_missing_line_items(self, limit: int = 100) -> PaymentIntegrityResponse:
        """Find payments without line items so an operator can repair them."""
        payments = await self.payment_repo.list_missing_line_items(limit=limit)
        payment_ids = [payment.id for payment in payments]
        return PaymentIntegrityResponse(payment_ids=payment_ids, total=len(payment_ids))
