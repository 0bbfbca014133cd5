"""
Service payment repository for database operations.
"""

from typing import Optional, List
from datetime import date
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case
from sqlalchemy.orm import selectinload

from autobilling.db.repositories.base_repository import BaseRepository
from autobilling.models.service_payment import (
    StakeholderServicePayment,
    StakeholderPaymentLineItem,
    PaymentStatus,
)


class ServicePaymentRepository(BaseRepository[StakeholderServicePayment]):
    """Repository for stakeholder service payment operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(StakeholderServicePayment, session)

    async def get_for_period(
        self,
        service_id: int,
        period_start: date,
        period_end: date,
    ) -> Optional[StakeholderServicePayment]:
        """Get the payment of a service for an exact billing period."""
        result = await self.session.execute(
            select(StakeholderServicePayment).where(
                StakeholderServicePayment.service_id == service_id,
                StakeholderServicePayment.billing_period_start == period_start,
                StakeholderServicePayment.billing_period_end == period_end,
            )
        )
        return result.scalar_one_or_none()

    async def get_with_line_items(self, payment_id: int) -> Optional[StakeholderServicePayment]:
        """Get payment with line items loaded."""
        result = await self.session.execute(
            select(StakeholderServicePayment)
            .options(selectinload(StakeholderServicePayment.line_items))
            .where(StakeholderServicePayment.id == payment_id)
        )
        return result.scalar_one_or_none()

    async def create_line_items(self, items: List[dict]) -> None:
        """Insert payment line items."""
        self.session.add_all([StakeholderPaymentLineItem(**item) for item in items])
        await self.session.flush()

    async def count(self, **filters) -> int:
        """Count payments matching equality filters."""
        query = select(func.count(StakeholderServicePayment.id))
        for key, value in filters.items():
            if hasattr(StakeholderServicePayment, key):
                query = query.where(getattr(StakeholderServicePayment, key) == value)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def summarize(self, **filters) -> dict:
        """Aggregate payment count and totals by status."""
        query = select(
            func.count(StakeholderServicePayment.id),
            func.coalesce(func.sum(StakeholderServicePayment.total_amount), 0),
            func.coalesce(
                func.sum(
                    case(
                        (StakeholderServicePayment.status == PaymentStatus.PAID, StakeholderServicePayment.total_amount),
                        else_=0,
                    )
                ),
                0,
            ),
            func.coalesce(
                func.sum(
                    case(
                        (StakeholderServicePayment.status == PaymentStatus.PENDING, StakeholderServicePayment.total_amount),
                        else_=0,
                    )
                ),
                0,
            ),
        )
        for key, value in filters.items():
            if hasattr(StakeholderServicePayment, key):
                query = query.where(getattr(StakeholderServicePayment, key) == value)

        total_payments, total_amount, paid_amount, pending_amount = (await self.session.execute(query)).one()
        return {
            "total_payments": total_payments or 0,
            "total_amount": Decimal(str(total_amount)),
            "paid_amount": Decimal(str(paid_amount)),
            "pending_amount": Decimal(str(pending_amount)),
        }

    async def list_missing_line_items(self, limit: int = 100) -> List[StakeholderServicePayment]:
        """List payments that have no line items (partial writes from older runs)."""
        query = (
            select(StakeholderServicePayment)
            .outerjoin(
                StakeholderPaymentLineItem,
                StakeholderPaymentLineItem.payment_id == StakeholderServicePayment.id,
            )
            .where(StakeholderPaymentLineItem.id.is_(None))
            .order_by(StakeholderServicePayment.id)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
