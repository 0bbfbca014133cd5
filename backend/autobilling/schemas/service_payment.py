"""
Service payment Pydantic schemas for API responses.
"""

from pydantic import BaseModel
from typing import Optional, List, Any, Dict
from datetime import date, datetime
from decimal import Decimal

from autobilling.models.service_payment import PaymentStatus


class PaymentLineItemResponse(BaseModel):
    """Schema for a payment line item."""
    id: int
    item_order: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    """Schema for payment response."""
    id: int
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
    status: PaymentStatus
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    vendor_snapshot: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentDetailResponse(PaymentResponse):
    """Schema for payment response with line items."""
    line_items: List[PaymentLineItemResponse] = []


class PaymentListResponse(BaseModel):
    """Schema for payment list response."""
    items: List[PaymentResponse]
    total: int


class PaymentSummaryResponse(BaseModel):
    """Aggregated payment amounts."""
    total_payments: int
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal


class PaymentIntegrityResponse(BaseModel):
    """Payments that were stored without line items."""
    payment_ids: List[int]
    total: int
