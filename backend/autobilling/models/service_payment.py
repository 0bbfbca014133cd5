"""
Service payment models for incoming stakeholder services.
"""

from sqlalchemy import Column, String, Integer, Date, DateTime, JSON, ForeignKey, Numeric, UniqueConstraint, func, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from autobilling.db.base import Base


class PaymentStatus(str, enum.Enum):
    """Payment status enumeration."""
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class StakeholderServicePayment(Base):
    """Payment owed to a stakeholder for one billing period of a service."""

    __tablename__ = "stakeholder_service_payments"
    __table_args__ = (
        UniqueConstraint(
            "service_id",
            "billing_period_start",
            "billing_period_end",
            name="uq_service_payment_period",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey("stakeholder_services.id"), nullable=False, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    stakeholder_id = Column(Integer, ForeignKey("stakeholders.id"), nullable=False, index=True)
    billing_period_start = Column(Date, nullable=False)
    billing_period_end = Column(Date, nullable=False)
    currency = Column(String(3), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        SQLEnum(PaymentStatus, values_callable=lambda x: [e.value for e in PaymentStatus]),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
    )
    payment_date = Column(Date, nullable=True)
    notes = Column(String(2000), nullable=True)
    vendor_snapshot = Column(JSON, nullable=True)  # Frozen at creation time
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    service = relationship("StakeholderService", back_populates="payments")
    line_items = relationship(
        "StakeholderPaymentLineItem",
        back_populates="payment",
        cascade="all, delete-orphan",
        order_by="StakeholderPaymentLineItem.item_order",
    )


class StakeholderPaymentLineItem(Base):
    """Snapshot of a service line item at the time the payment was generated."""

    __tablename__ = "stakeholder_payment_line_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(Integer, ForeignKey("stakeholder_service_payments.id", ondelete="CASCADE"), nullable=False, index=True)
    item_order = Column(Integer, nullable=False, default=0)
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    # Relationships
    payment = relationship("StakeholderServicePayment", back_populates="line_items")
