"""
Billing date calculator for recurring stakeholder services.

Pure functions: given a billing cycle and a reference date they always return
the same result and never touch the database or the clock.

Month and year arithmetic uses ``relativedelta``, which clamps to the last day
of the target month (Jan 31 + 1 month is Feb 28/29, never Mar 2/3).

Fallbacks: an unrecognized cycle type, or an ``x_days`` cycle without a positive
``interval_days``, advances by one month so the scheduler keeps moving forward.
Both cases are logged as warnings because they point at a misconfigured service.
"""

import logging
from datetime import date, timedelta
from typing import Union

from dateutil.relativedelta import relativedelta

from autobilling.core.exceptions import InvalidBillingConfiguration
from autobilling.models.stakeholder_service import BillingCycleType
from autobilling.schemas.billing import BillingCycleSpec, BillingPeriod

logger = logging.getLogger(__name__)

ONE_MONTH = relativedelta(months=1)
ONE_WEEK = timedelta(days=7)
ONE_YEAR = relativedelta(years=1)

CycleStep = Union[relativedelta, timedelta]


def _cycle_step(cycle: BillingCycleSpec) -> CycleStep:
    """Return the length of one billing cycle."""
    cycle_type = cycle.cycle_type

    if cycle_type == BillingCycleType.MONTHLY.value:
        return ONE_MONTH
    if cycle_type == BillingCycleType.WEEKLY.value:
        return ONE_WEEK
    if cycle_type == BillingCycleType.YEARLY.value:
        return ONE_YEAR
    if cycle_type == BillingCycleType.X_DAYS.value:
        if cycle.interval_days is not None and cycle.interval_days > 0:
            return timedelta(days=cycle.interval_days)
        logger.warning(
            "x_days billing cycle without a positive interval, falling back to one month",
            extra={"interval_days": cycle.interval_days},
        )
        return ONE_MONTH

    logger.warning(
        f"Unrecognized billing cycle type {cycle_type!r}, falling back to monthly",
        extra={"cycle_type": cycle_type},
    )
    return ONE_MONTH


def compute_next_billing_date(cycle: BillingCycleSpec, from_date: date) -> date:
    """
    Compute the billing date that follows from_date.

    Args:
        cycle: Billing cycle of the service
        from_date: Current billing date

    Returns:
        Next billing date, always strictly after from_date
    """
    next_date = from_date + _cycle_step(cycle)

    if cycle.cycle_type == BillingCycleType.MONTHLY.value and cycle.day_of_month:
        # relativedelta(day=N) clamps N to the length of the month
        next_date = next_date + relativedelta(day=cycle.day_of_month)
    elif (
        cycle.cycle_type == BillingCycleType.YEARLY.value
        and cycle.month_of_year
        and cycle.day_of_month
    ):
        # Anchor is reapplied on every step
        next_date = next_date + relativedelta(month=cycle.month_of_year, day=cycle.day_of_month)

    if next_date <= from_date:
        logger.warning(
            "Computed billing date did not advance, forcing a one month step",
            extra={"from_date": from_date.isoformat(), "computed": next_date.isoformat()},
        )
        next_date = from_date + ONE_MONTH

    return next_date


def compute_billing_period(
    cycle: BillingCycleSpec,
    service_start_date: date,
    billing_date: date,
) -> BillingPeriod:
    """
    Compute the period billed on billing_date.

    The period ends on billing_date and starts one cycle earlier, but never
    before the service started.

    Raises:
        InvalidBillingConfiguration: If the service starts after billing_date
    """
    start = billing_date - _cycle_step(cycle)
    if start < service_start_date:
        start = service_start_date

    if start > billing_date:
        raise InvalidBillingConfiguration(
            f"Billing date {billing_date.isoformat()} is before service start date "
            f"{service_start_date.isoformat()}",
            details={
                "billing_date": billing_date.isoformat(),
                "start_date": service_start_date.isoformat(),
            },
        )

    return BillingPeriod(start=start, end=billing_date)

