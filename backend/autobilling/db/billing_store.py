"""
Billing store.
The record-store operations the auto-billing run depends on, implemented over
the async SQLAlchemy repositories. One store wraps one session (unit of work).
"""

from typing import List, Optional
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession

from autobilling.db.repositories.stakeholder_repository import StakeholderRepository
from autobilling.db.repositories.stakeholder_service_repository import StakeholderServiceRepository
from autobilling.db.repositories.service_payment_repository import ServicePaymentRepository
from autobilling.models.stakeholder import Stakeholder
from autobilling.models.stakeholder_service import StakeholderService
from autobilling.schemas.billing import (
    BillingCycleSpec,
    DueService,
    DueServiceLineItem,
    PaymentCreate,
    PaymentLineItemCreate,
    PaymentRecord,
    StakeholderSnapshot,
)


def to_stakeholder_snapshot(stakeholder: Optional[Stakeholder]) -> Optional[StakeholderSnapshot]:
    """Convert a stakeholder row to the identity fields kept on payments."""
    if stakeholder is None:
        return None
    return StakeholderSnapshot(
        name=stakeholder.name,
        address=stakeholder.address,
        contact_persons=stakeholder.contact_persons,
    )


def to_due_service(service: StakeholderService) -> DueService:
    """Convert a service row, with stakeholder and line items loaded, to a DueService."""
    return DueService(
        id=service.id,
        company_id=service.company_id,
        stakeholder_id=service.stakeholder_id,
        service_name=service.service_name,
        currency=service.currency,
        tax_rate=service.tax_rate or 0,
        start_date=service.start_date,
        last_billed_date=service.last_billed_date,
        next_billing_date=service.next_billing_date,
        billing_cycle=BillingCycleSpec(
            cycle_type=service.billing_cycle_type,
            day_of_month=service.billing_day_of_month,
            day_of_week=service.billing_day_of_week,
            month_of_year=service.billing_month_of_year,
            interval_days=service.billing_interval_days,
        ),
        stakeholder=to_stakeholder_snapshot(service.stakeholder),
        line_items=[DueServiceLineItem.model_validate(item) for item in service.line_items],
    )


class BillingStore:
    """Store operations used by the recurring payment run."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.service_repo = StakeholderServiceRepository(session)
        self.payment_repo = ServicePaymentRepository(session)
        self.stakeholder_repo = StakeholderRepository(session)

    async def find_due_services(self, today: date, limit: Optional[int] = None) -> List[StakeholderService]:
        """
        Find services due for billing on or before today.

        Rows come back with stakeholder and line items loaded. Convert each one
        with to_due_service; a row that does not convert only fails its own service.
        """
        return await self.service_repo.list_due_for_billing(today, limit=limit)

    async def find_payment(
        self,
        service_id: int,
        period_start: date,
        period_end: date,
    ) -> Optional[PaymentRecord]:
        """Find the payment of a service for a billing period."""
        payment = await self.payment_repo.get_for_period(service_id, period_start, period_end)
        if not payment:
            return None
        return PaymentRecord.model_validate(payment)

    async def insert_payment(self, payment: PaymentCreate) -> PaymentRecord:
        """Insert a payment row and return it with its assigned id."""
        payment_dict = payment.model_dump()
        if payment.vendor_snapshot is not None:
            payment_dict["vendor_snapshot"] = payment.vendor_snapshot.model_dump(mode="json")
        created = await self.payment_repo.create(**payment_dict)
        return PaymentRecord.model_validate(created)

    async def insert_line_items(self, items: List[PaymentLineItemCreate]) -> None:
        """Insert the line items of a payment."""
        await self.payment_repo.create_line_items([item.model_dump() for item in items])

    async def update_service(
        self,
        service_id: int,
        next_billing_date: date,
        last_billed_date: Optional[date] = None,
    ) -> None:
        """Advance the billing pointers of a service."""
        await self.service_repo.update_billing_dates(
            service_id,
            next_billing_date=next_billing_date,
            last_billed_date=last_billed_date,
        )

    async def get_stakeholder_snapshot(self, stakeholder_id: int) -> Optional[StakeholderSnapshot]:
        """Get the current identity fields of a stakeholder."""
        stakeholder = await self.stakeholder_repo.get(stakeholder_id)
        return to_stakeholder_snapshot(stakeholder)
