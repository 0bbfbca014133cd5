"""
Health repository.
Database connectivity and billing backlog checks.
"""

from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, text

from autobilling.models.stakeholder_service import (
    StakeholderService,
    ServiceDirection,
    ServiceStatus,
)


class HealthRepository:
    """Repository for health check operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def check_database(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            result = await self.session.execute(text("SELECT 1"))
            return result.scalar() == 1
        except Exception:
            return False

    async def count_overdue_services(self, today: date) -> int:
        """Count auto-billed services whose next billing date has already passed."""
        result = await self.session.execute(
            select(func.count(StakeholderService.id)).where(
                StakeholderService.direction == ServiceDirection.INCOMING,
                StakeholderService.status == ServiceStatus.ACTIVE,
                StakeholderService.auto_create_payment == True,
                StakeholderService.next_billing_date < today,
            )
        )
        return result.scalar() or 0
