"""
Stakeholder service repository for database operations.
"""

from typing import List, Optional
from datetime import date, datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from autobilling.db.repositories.base_repository import BaseRepository
from autobilling.models.stakeholder_service import (
    StakeholderService,
    ServiceDirection,
    ServiceType,
    ServiceStatus,
)


class StakeholderServiceRepository(BaseRepository[StakeholderService]):
    """Repository for stakeholder service operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(StakeholderService, session)

    async def list_due_for_billing(
        self,
        today: date,
        limit: Optional[int] = None,
    ) -> List[StakeholderService]:
        """
        List incoming recurring services whose next billing date is today or earlier.
        Stakeholder and line items are eager-loaded.
        """
        query = (
            select(StakeholderService)
            .options(
                selectinload(StakeholderService.stakeholder),
                selectinload(StakeholderService.line_items),
            )
            .where(
                StakeholderService.direction == ServiceDirection.INCOMING,
                StakeholderService.service_type == ServiceType.RECURRING,
                StakeholderService.status == ServiceStatus.ACTIVE,
                StakeholderService.auto_create_payment == True,
                StakeholderService.next_billing_date <= today,
            )
            .order_by(StakeholderService.next_billing_date, StakeholderService.id)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update_billing_dates(
        self,
        service_id: int,
        next_billing_date: date,
        last_billed_date: Optional[date] = None,
    ) -> None:
        """Advance the billing pointers of a service."""
        values = {
            "next_billing_date": next_billing_date,
            "updated_at": datetime.now(timezone.utc),
        }
        if last_billed_date is not None:
            values["last_billed_date"] = last_billed_date

        await self.session.execute(
            update(StakeholderService)
            .where(StakeholderService.id == service_id)
            .values(**values)
        )
        await self.session.flush()
