"""
Auto-billing Pydantic schemas.
Values exchanged between the billing store, the date calculator and the run scheduler.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import date
from decimal import Decimal


class BillingCycleSpec(BaseModel):
    """Recurrence rule of a service. Only the fields relevant to cycle_type are used."""
    cycle_type: Optional[str] = None
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None  # Reserved, not used in date math
    month_of_year: Optional[int] = None
    interval_days: Optional[int] = None


class BillingPeriod(BaseModel):
    """Inclusive date range covered by one payment."""
    start: date
    end: date


class StakeholderSnapshot(BaseModel):
    """Stakeholder identity copied onto payments at creation time."""
    name: str
    address: Optional[str] = None
    contact_persons: Optional[Any] = None  # Copied as stored


class DueServiceLineItem(BaseModel):
    """Service line item as read for billing."""
    item_order: int = 0
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal

    class Config:
        from_attributes = True


class DueService(BaseModel):
    """Service that is due for billing, with its stakeholder joined as a single object."""
    id: int
    company_id: int
    stakeholder_id: int
    service_name: str
    currency: str
    tax_rate: Decimal = Decimal("0")
    start_date: date
    last_billed_date: Optional[date] = None
    next_billing_date: Optional[date] = None
    billing_cycle: BillingCycleSpec
    stakeholder: Optional[StakeholderSnapshot] = None
    line_items: List[DueServiceLineItem] = []


class PaymentLineItemCreate(BaseModel):
    """Line item to insert for a generated payment."""
    payment_id: int
    item_order: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


class PaymentCreate(BaseModel):
    """Payment row to insert for one billing period."""
    service_id: int
    company_id: int
    stakeholder_id: int
    billing_period_start: date
    billing_period_end: date
    currency: str
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: str = "pending"
    notes: Optional[str] = None
    vendor_snapshot: Optional[StakeholderSnapshot] = None


class PaymentRecord(BaseModel):
    """Minimal view of a stored payment."""
    id: int
    service_id: int
    billing_period_start: date
    billing_period_end: date
    total_amount: Decimal

    class Config:
        from_attributes = True


class RunReport(BaseModel):
    """Counts and per-service errors of one auto-billing run."""
    processed: int = 0
    created: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)


class RunResponse(BaseModel):
    """Response body of a successful run trigger."""
    status: str = "success"
    message: str
    results: RunReport


class RunErrorResponse(BaseModel):
    """Response body of a run that could not start."""
    status: str = "error"
    error: str
