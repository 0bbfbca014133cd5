"""
Recurring payment service.

Runs one auto-billing pass: for every incoming recurring service that is due,
creates the pending payment for the current billing period (at most one per
period) and advances the service's billing dates.

Each service is processed in its own transaction. A failing service is
recorded in the run report and never stops the batch. This includes a
service row that cannot be converted for billing. The only error that
escapes ``run_once`` is a failure to load the due services.
"""

import enum
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autobilling.core.config import settings
from autobilling.core.exceptions import BillingRunError
from autobilling.core.integrations.observability import record_billing_run
from autobilling.db.billing_store import BillingStore, to_due_service
from autobilling.models.service_payment import PaymentStatus
from autobilling.services.base_service import BaseService
from autobilling.services.notification_service import NotificationService
from autobilling.schemas.billing import (
    BillingPeriod,
    DueService,
    DueServiceLineItem,
    PaymentCreate,
    PaymentLineItemCreate,
    PaymentRecord,
    RunReport,
)
from autobilling.utils.billing_dates import compute_billing_period, compute_next_billing_date

logger = logging.getLogger(__name__)


class BillingOutcome(str, enum.Enum):
    """Result of processing one due service."""
    CREATED = "created"
    SKIPPED = "skipped"


def compute_payment_totals(
    line_items: List[DueServiceLineItem],
    tax_rate: Decimal,
) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Compute subtotal, tax and total for a set of line items.

    Returns:
        (subtotal, tax_amount, total_amount), each rounded to cents
    """
    subtotal = sum((Decimal(item.amount) for item in line_items), Decimal("0"))
    tax_amount = BaseService.to_money(subtotal * Decimal(tax_rate) / Decimal("100"))
    subtotal = BaseService.to_money(subtotal)
    return subtotal, tax_amount, subtotal + tax_amount


class RecurringPaymentService(BaseService):
    """Service that generates payments for due recurring incoming services."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        notifications_enabled: Optional[bool] = None,
        batch_limit: Optional[int] = None,
    ):
        self.session_maker = session_maker
        self.notifications_enabled = (
            settings.AUTO_BILLING_NOTIFICATIONS_ENABLED
            if notifications_enabled is None
            else notifications_enabled
        )
        self.batch_limit = batch_limit if batch_limit is not None else settings.AUTO_BILLING_BATCH_LIMIT

    async def run_once(self, today: date) -> RunReport:
        """
        Process every service due on or before today.

        Args:
            today: Run date; services with next_billing_date <= today are due

        Returns:
            RunReport with processed/created/skipped counts and per-service errors

        Raises:
            BillingRunError: If the due services cannot be loaded
        """
        logger.info(f"Starting auto-billing run for {today.isoformat()}")

        try:
            async with self.session_maker() as session:
                due_services = await BillingStore(session).find_due_services(today, limit=self.batch_limit)
        except Exception as exc:
            logger.exception("Failed to load services due for billing")
            raise BillingRunError(str(exc) or type(exc).__name__) from exc

        logger.info(f"Found {len(due_services)} services due for billing")
        if self.batch_limit and len(due_services) >= self.batch_limit:
            logger.warning(
                f"Batch limit of {self.batch_limit} reached, remaining due services are deferred to the next run",
                extra={"batch_limit": self.batch_limit},
            )

        report = RunReport()
        for row in due_services:
            report.processed += 1
            try:
                outcome = await self._process_service(to_due_service(row), today)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                logger.error(
                    f"Service {row.id}: Error - {message}",
                    extra={"service_id": row.id, "exception_type": type(exc).__name__},
                )
                report.errors.append(f"Service {row.id}: {message}")
                continue

            if outcome == BillingOutcome.CREATED:
                report.created += 1
            else:
                report.skipped += 1

        logger.info(
            f"Completed: {report.created} created, {report.skipped} skipped, {len(report.errors)} errors",
            extra={"processed": report.processed},
        )
        record_billing_run(report)
        return report

    async def _process_service(self, service: DueService, today: date) -> BillingOutcome:
        """Bill one due service."""
        billing_date = service.next_billing_date or today

        if service.stakeholder is None:
            logger.info(f"Service {service.id}: No stakeholder found, skipping")
            return BillingOutcome.SKIPPED

        # Not advanced, so the service stays visible as due until line items are added
        if not service.line_items:
            logger.info(f"Service {service.id}: No line items, skipping")
            return BillingOutcome.SKIPPED

        period = compute_billing_period(service.billing_cycle, service.start_date, billing_date)
        next_billing_date = compute_next_billing_date(service.billing_cycle, billing_date)

        try:
            payment = await self._create_payment(service, period, billing_date, next_billing_date)
        except IntegrityError:
            # Another run inserted the same period between our check and insert
            if not await self._payment_exists(service.id, period):
                raise
            logger.info(f"Service {service.id}: Payment created concurrently for period, skipping")
            await self._advance_billing_date(service.id, next_billing_date)
            return BillingOutcome.SKIPPED

        if payment is None:
            return BillingOutcome.SKIPPED

        logger.info(f"Service {service.id}: Payment {payment.id} created successfully")
        if self.notifications_enabled:
            await self._notify_payment_created(service, payment)
        return BillingOutcome.CREATED

    async def _create_payment(
        self,
        service: DueService,
        period: BillingPeriod,
        billing_date: date,
        next_billing_date: date,
    ) -> Optional[PaymentRecord]:
        """
        Create the payment, its line items and advance the service in one transaction.

        Returns:
            The created payment, or None if the period was already billed
            (the service's next billing date is still advanced).
        """
        async with self.session_maker() as session:
            async with session.begin():
                store = BillingStore(session)

                existing = await store.find_payment(service.id, period.start, period.end)
                if existing:
                    logger.info(
                        f"Service {service.id}: Payment already exists for period, skipping",
                        extra={"payment_id": existing.id},
                    )
                    await store.update_service(service.id, next_billing_date=next_billing_date)
                    return None

                subtotal, tax_amount, total_amount = compute_payment_totals(
                    service.line_items, service.tax_rate
                )
                vendor_snapshot = (
                    await store.get_stakeholder_snapshot(service.stakeholder_id)
                    or service.stakeholder
                )

                payment = await store.insert_payment(
                    PaymentCreate(
                        service_id=service.id,
                        company_id=service.company_id,
                        stakeholder_id=service.stakeholder_id,
                        billing_period_start=period.start,
                        billing_period_end=period.end,
                        currency=service.currency,
                        subtotal=subtotal,
                        tax_rate=service.tax_rate,
                        tax_amount=tax_amount,
                        total_amount=total_amount,
                        status=PaymentStatus.PENDING.value,
                        notes=f"Auto-generated payment for {service.service_name}",
                        vendor_snapshot=vendor_snapshot,
                    )
                )

                await store.insert_line_items([
                    PaymentLineItemCreate(
                        payment_id=payment.id,
                        item_order=item.item_order,
                        description=item.description,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        amount=item.amount,
                    )
                    for item in service.line_items
                ])

                await store.update_service(
                    service.id,
                    next_billing_date=next_billing_date,
                    last_billed_date=billing_date,
                )
                return payment

    async def _payment_exists(self, service_id: int, period: BillingPeriod) -> bool:
        async with self.session_maker() as session:
            existing = await BillingStore(session).find_payment(service_id, period.start, period.end)
            return existing is not None

    async def _advance_billing_date(self, service_id: int, next_billing_date: date) -> None:
        async with self.session_maker() as session:
            async with session.begin():
                await BillingStore(session).update_service(service_id, next_billing_date=next_billing_date)

    async def _notify_payment_created(self, service: DueService, payment: PaymentRecord) -> None:
        """Queue a notification; the payment stands even if this fails."""
        try:
            async with self.session_maker() as session:
                await NotificationService(session).enqueue_payment_created(service, payment)
        except Exception:
            logger.exception(
                f"Service {service.id}: Failed to queue notification for payment {payment.id}",
                extra={"service_id": service.id, "payment_id": payment.id},
            )
