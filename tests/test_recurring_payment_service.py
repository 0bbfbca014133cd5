"""
Recurring payment run tests against an in-memory database.
"""

import logging
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import delete, select, func

from autobilling.core.exceptions import BillingRunError
from autobilling.db.billing_store import BillingStore
from autobilling.models import (
    Notification,
    Stakeholder,
    StakeholderService,
    StakeholderServicePayment,
    StakeholderPaymentLineItem,
    ServiceStatus,
    ServiceDirection,
)
from autobilling.services import recurring_payment_service
from autobilling.services.notification_service import NotificationService
from autobilling.services.recurring_payment_service import RecurringPaymentService, compute_payment_totals
from autobilling.schemas.billing import DueServiceLineItem


async def _get_service(session_maker, service_id):
    async with session_maker() as session:
        return await session.get(StakeholderService, service_id)


async def _payments(session_maker, service_id=None):
    async with session_maker() as session:
        query = select(StakeholderServicePayment).order_by(StakeholderServicePayment.id)
        if service_id is not None:
            query = query.where(StakeholderServicePayment.service_id == service_id)
        return list((await session.execute(query)).scalars().all())


async def _count(session_maker, model):
    async with session_maker() as session:
        return (await session.execute(select(func.count(model.id)))).scalar()


@pytest.mark.asyncio
async def test_end_to_end_monthly_payment(test_session_maker, create_service):
    service_id = await create_service(
        line_items=(
            ("Office cleaning", Decimal("2"), Decimal("400.00")),
            ("Window cleaning", Decimal("1"), Decimal("200.00")),
        ),
    )
    scheduler = RecurringPaymentService(test_session_maker)

    report = await scheduler.run_once(date(2024, 2, 1))

    assert report.processed == 1
    assert report.created == 1
    assert report.skipped == 0
    assert report.errors == []

    payments = await _payments(test_session_maker, service_id)
    assert len(payments) == 1
    payment = payments[0]
    assert payment.billing_period_start == date(2024, 1, 1)
    assert payment.billing_period_end == date(2024, 2, 1)
    assert payment.subtotal == Decimal("1000.00")
    assert payment.tax_amount == Decimal("100.00")
    assert payment.total_amount == Decimal("1100.00")
    assert payment.status.value == "pending"
    assert payment.notes == "Auto-generated payment for Monthly cleaning"
    assert payment.vendor_snapshot["name"] == "Acme Facilities"
    assert payment.vendor_snapshot["address"] == "12 Harbour Road"

    async with test_session_maker() as session:
        items = list((await session.execute(
            select(StakeholderPaymentLineItem)
            .where(StakeholderPaymentLineItem.payment_id == payment.id)
            .order_by(StakeholderPaymentLineItem.item_order)
        )).scalars().all())
    assert [item.description for item in items] == ["Office cleaning", "Window cleaning"]
    assert [item.item_order for item in items] == [0, 1]
    assert items[0].amount == Decimal("800.00")

    service = await _get_service(test_session_maker, service_id)
    assert service.last_billed_date == date(2024, 2, 1)
    assert service.next_billing_date == date(2024, 3, 1)


@pytest.mark.asyncio
async def test_no_due_services_returns_empty_report(test_session_maker, create_service):
    await create_service(next_billing_date=date(2024, 2, 2))

    report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.model_dump() == {"processed": 0, "created": 0, "skipped": 0, "errors": []}


@pytest.mark.asyncio
async def test_only_eligible_services_are_processed(test_session_maker, create_service):
    await create_service(status=ServiceStatus.PAUSED)
    await create_service(direction=ServiceDirection.OUTGOING)
    await create_service(auto_create_payment=False)
    await create_service(next_billing_date=None)
    eligible_id = await create_service()

    report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.processed == 1
    assert report.created == 1
    assert [p.service_id for p in await _payments(test_session_maker)] == [eligible_id]


@pytest.mark.asyncio
async def test_second_run_creates_no_duplicates(test_session_maker, create_service):
    service_id = await create_service()
    scheduler = RecurringPaymentService(test_session_maker)

    first = await scheduler.run_once(date(2024, 2, 1))
    after_first = (await _get_service(test_session_maker, service_id)).next_billing_date
    second = await scheduler.run_once(date(2024, 2, 1))

    assert first.created == 1
    assert second.created == 0
    assert len(await _payments(test_session_maker, service_id)) == 1
    assert (await _get_service(test_session_maker, service_id)).next_billing_date == after_first


@pytest.mark.asyncio
async def test_existing_payment_is_skipped_and_date_advanced(test_session_maker, create_service):
    service_id = await create_service()
    scheduler = RecurringPaymentService(test_session_maker)
    await scheduler.run_once(date(2024, 2, 1))

    # Simulate a run that stopped before the service dates were saved
    async with test_session_maker() as session:
        service = await session.get(StakeholderService, service_id)
        service.next_billing_date = date(2024, 2, 1)
        await session.commit()

    report = await scheduler.run_once(date(2024, 2, 1))

    assert report.processed == 1
    assert report.skipped == 1
    assert report.created == 0
    assert len(await _payments(test_session_maker, service_id)) == 1
    service = await _get_service(test_session_maker, service_id)
    assert service.next_billing_date == date(2024, 3, 1)


@pytest.mark.asyncio
async def test_service_without_line_items_is_never_advanced(test_session_maker, create_service):
    service_id = await create_service(line_items=())
    scheduler = RecurringPaymentService(test_session_maker)

    first = await scheduler.run_once(date(2024, 2, 1))
    second = await scheduler.run_once(date(2024, 2, 1))

    assert first.skipped == 1
    assert second.skipped == 1
    service = await _get_service(test_session_maker, service_id)
    assert service.next_billing_date == date(2024, 2, 1)
    assert service.last_billed_date is None
    assert await _payments(test_session_maker, service_id) == []


@pytest.mark.asyncio
async def test_failing_service_does_not_stop_the_batch(test_session_maker, create_service, monkeypatch):
    first_id = await create_service(service_name="First")
    failing_id = await create_service(service_name="Second")
    third_id = await create_service(service_name="Third")

    original_insert = BillingStore.insert_payment

    async def flaky_insert(self, payment):
        if payment.service_id == failing_id:
            raise RuntimeError("insert failed")
        return await original_insert(self, payment)

    monkeypatch.setattr(BillingStore, "insert_payment", flaky_insert)

    report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.processed == 3
    assert report.created == 2
    assert report.errors == [f"Service {failing_id}: insert failed"]

    for service_id in (first_id, third_id):
        service = await _get_service(test_session_maker, service_id)
        assert service.next_billing_date == date(2024, 3, 1)
        assert len(await _payments(test_session_maker, service_id)) == 1

    failing = await _get_service(test_session_maker, failing_id)
    assert failing.next_billing_date == date(2024, 2, 1)
    assert await _payments(test_session_maker, failing_id) == []


@pytest.mark.asyncio
async def test_contact_persons_of_any_shape_are_copied_as_stored(test_session_maker, create_service):
    plain_id = await create_service(service_name="Plain")
    keyed_id = await create_service(service_name="Keyed")

    async with test_session_maker() as session:
        service = await session.get(StakeholderService, keyed_id)
        stakeholder = await session.get(Stakeholder, service.stakeholder_id)
        stakeholder.contact_persons = {"primary": {"name": "Dana", "email": "dana@acme.test"}}
        await session.commit()

    report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.processed == 2
    assert report.created == 2
    assert report.errors == []
    payment = (await _payments(test_session_maker, keyed_id))[0]
    assert payment.vendor_snapshot["contact_persons"] == {"primary": {"name": "Dana", "email": "dana@acme.test"}}
    assert len(await _payments(test_session_maker, plain_id)) == 1


@pytest.mark.asyncio
async def test_row_that_cannot_be_read_only_fails_its_service(test_session_maker, create_service, monkeypatch):
    good_id = await create_service(service_name="Good")
    broken_id = await create_service(service_name="Broken")

    original_convert = recurring_payment_service.to_due_service

    def picky_convert(row):
        if row.id == broken_id:
            raise ValueError("malformed service row")
        return original_convert(row)

    monkeypatch.setattr(recurring_payment_service, "to_due_service", picky_convert)

    report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.processed == 2
    assert report.created == 1
    assert report.errors == [f"Service {broken_id}: malformed service row"]
    assert len(await _payments(test_session_maker, good_id)) == 1
    assert (await _get_service(test_session_maker, broken_id)).next_billing_date == date(2024, 2, 1)


@pytest.mark.asyncio
async def test_service_whose_stakeholder_is_gone_is_skipped(test_session_maker, create_service):
    service_id = await create_service()

    # SQLite does not enforce the foreign key, which leaves an orphaned service
    async with test_session_maker() as session:
        service = await session.get(StakeholderService, service_id)
        await session.execute(delete(Stakeholder).where(Stakeholder.id == service.stakeholder_id))
        await session.commit()

    report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.processed == 1
    assert report.skipped == 1
    assert report.errors == []
    assert await _payments(test_session_maker, service_id) == []
    assert (await _get_service(test_session_maker, service_id)).next_billing_date == date(2024, 2, 1)


@pytest.mark.asyncio
async def test_batch_limit_defers_the_rest_and_warns(test_session_maker, create_service, caplog):
    first_id = await create_service(next_billing_date=date(2024, 1, 15))
    second_id = await create_service(next_billing_date=date(2024, 1, 20))
    deferred_id = await create_service(next_billing_date=date(2024, 2, 1))

    with caplog.at_level(logging.WARNING, logger="autobilling.services.recurring_payment_service"):
        report = await RecurringPaymentService(test_session_maker, batch_limit=2).run_once(date(2024, 2, 1))

    assert report.processed == 2
    assert [p.service_id for p in await _payments(test_session_maker)] == [first_id, second_id]
    assert (await _get_service(test_session_maker, deferred_id)).next_billing_date == date(2024, 2, 1)
    assert any("Batch limit of 2 reached" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_no_batch_limit_bills_every_due_service(test_session_maker, create_service, caplog):
    for _ in range(3):
        await create_service()

    with caplog.at_level(logging.WARNING, logger="autobilling.services.recurring_payment_service"):
        report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.processed == 3
    assert report.created == 3
    assert not any("Batch limit" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_line_item_failure_rolls_back_payment(test_session_maker, create_service, monkeypatch):
    service_id = await create_service()

    async def failing_line_items(self, items):
        raise RuntimeError("line items rejected")

    monkeypatch.setattr(BillingStore, "insert_line_items", failing_line_items)

    report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.errors == [f"Service {service_id}: line items rejected"]
    assert await _payments(test_session_maker, service_id) == []
    assert (await _get_service(test_session_maker, service_id)).next_billing_date == date(2024, 2, 1)


@pytest.mark.asyncio
async def test_concurrent_insert_is_treated_as_duplicate(test_session_maker, create_service, monkeypatch):
    service_id = await create_service()
    scheduler = RecurringPaymentService(test_session_maker)
    await scheduler.run_once(date(2024, 2, 1))

    async with test_session_maker() as session:
        service = await session.get(StakeholderService, service_id)
        service.next_billing_date = date(2024, 2, 1)
        await session.commit()

    # The first lookup misses, as if another run inserted right after our check
    original_find = BillingStore.find_payment
    calls = {"count": 0}

    async def racing_find(self, *args):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return await original_find(self, *args)

    monkeypatch.setattr(BillingStore, "find_payment", racing_find)

    report = await scheduler.run_once(date(2024, 2, 1))

    assert report.skipped == 1
    assert report.errors == []
    assert len(await _payments(test_session_maker, service_id)) == 1
    assert (await _get_service(test_session_maker, service_id)).next_billing_date == date(2024, 3, 1)


@pytest.mark.asyncio
async def test_vendor_snapshot_uses_current_stakeholder_and_stays_frozen(test_session_maker, create_service):
    service_id = await create_service(stakeholder_name="Old Name Ltd")
    scheduler = RecurringPaymentService(test_session_maker)

    async with test_session_maker() as session:
        service = await session.get(StakeholderService, service_id)
        stakeholder = await session.get(Stakeholder, service.stakeholder_id)
        stakeholder.name = "New Name Ltd"
        await session.commit()

    await scheduler.run_once(date(2024, 2, 1))

    async with test_session_maker() as session:
        service = await session.get(StakeholderService, service_id)
        stakeholder = await session.get(Stakeholder, service.stakeholder_id)
        stakeholder.name = "Renamed Again Ltd"
        await session.commit()

    payment = (await _payments(test_session_maker, service_id))[0]
    assert payment.vendor_snapshot["name"] == "New Name Ltd"


@pytest.mark.asyncio
async def test_start_date_after_billing_date_is_reported_as_error(test_session_maker, create_service):
    service_id = await create_service(start_date=date(2024, 3, 1), next_billing_date=date(2024, 2, 1))

    report = await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))

    assert report.processed == 1
    assert len(report.errors) == 1
    assert report.errors[0].startswith(f"Service {service_id}: ")


@pytest.mark.asyncio
async def test_notification_is_queued_after_creation(test_session_maker, create_service):
    await create_service()

    await RecurringPaymentService(test_session_maker, notifications_enabled=True).run_once(date(2024, 2, 1))

    async with test_session_maker() as session:
        notification = (await session.execute(select(Notification))).scalar_one()
    assert notification.reference_table == "stakeholder_service_payments"
    assert notification.recipients == ["dana@acme.test"]


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_payment(test_session_maker, create_service, monkeypatch):
    service_id = await create_service()

    async def broken_enqueue(self, service, payment):
        raise RuntimeError("queue unavailable")

    monkeypatch.setattr(NotificationService, "enqueue_payment_created", broken_enqueue)

    report = await RecurringPaymentService(test_session_maker, notifications_enabled=True).run_once(date(2024, 2, 1))

    assert report.created == 1
    assert report.errors == []
    assert len(await _payments(test_session_maker, service_id)) == 1
    assert await _count(test_session_maker, Notification) == 0


@pytest.mark.asyncio
async def test_due_services_query_failure_is_fatal(test_session_maker, monkeypatch):
    async def broken_query(self, today, limit=None):
        raise RuntimeError("connection refused")

    monkeypatch.setattr(BillingStore, "find_due_services", broken_query)

    with pytest.raises(BillingRunError) as exc_info:
        await RecurringPaymentService(test_session_maker).run_once(date(2024, 2, 1))
    assert exc_info.value.message == "connection refused"


def test_payment_totals_round_tax_half_up():
    items = [
        DueServiceLineItem(description="Support", quantity=Decimal("3"), unit_price=Decimal("33.35"), amount=Decimal("100.05")),
    ]

    subtotal, tax_amount, total_amount = compute_payment_totals(items, Decimal("7.5"))

    assert subtotal == Decimal("100.05")
    assert tax_amount == Decimal("7.50")  # 7.50375
    assert total_amount == Decimal("107.55")
