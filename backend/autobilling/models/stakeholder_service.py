"""
Stakeholder service models: recurring billing agreements and their line items.
"""

from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, ForeignKey, Numeric, func, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from autobilling.db.base import Base


class ServiceDirection(str, enum.Enum):
    """Direction of a service."""
    INCOMING = "incoming"  # stakeholder bills the company, payments are auto-created
    OUTGOING = "outgoing"  # company bills the stakeholder


class ServiceType(str, enum.Enum):
    """Service type enumeration."""
    RECURRING = "recurring"
    ONE_OFF = "one_off"


class ServiceStatus(str, enum.Enum):
    """Service status enumeration."""
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class BillingCycleType(str, enum.Enum):
    """Billing cycle type enumeration."""
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"
    X_DAYS = "x_days"


class StakeholderService(Base):
    """Recurring service agreement with a stakeholder."""

    __tablename__ = "stakeholder_services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, nullable=False, index=True)
    stakeholder_id = Column(Integer, ForeignKey("stakeholders.id"), nullable=False, index=True)
    service_name = Column(String(255), nullable=False)
    direction = Column(
        SQLEnum(ServiceDirection, values_callable=lambda x: [e.value for e in ServiceDirection]),
        nullable=False,
        default=ServiceDirection.INCOMING,
    )
    service_type = Column(
        SQLEnum(ServiceType, values_callable=lambda x: [e.value for e in ServiceType]),
        nullable=False,
        default=ServiceType.RECURRING,
    )
    status = Column(
        SQLEnum(ServiceStatus, values_callable=lambda x: [e.value for e in ServiceStatus]),
        nullable=False,
        default=ServiceStatus.ACTIVE,
        index=True,
    )
    currency = Column(String(3), nullable=False, default="USD")
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)  # Percent, 0-100
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    # Billing cycle. Kept as a plain string so unknown values can be read back.
    billing_cycle_type = Column(String(20), nullable=True)
    billing_day_of_month = Column(Integer, nullable=True)  # 1-31
    billing_day_of_week = Column(Integer, nullable=True)  # 0-6, not used in date math
    billing_month_of_year = Column(Integer, nullable=True)  # 1-12
    billing_interval_days = Column(Integer, nullable=True)

    # Billing pointers
    last_billed_date = Column(Date, nullable=True)
    next_billing_date = Column(Date, nullable=True, index=True)
    auto_create_payment = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    stakeholder = relationship("Stakeholder", back_populates="services")
    line_items = relationship(
        "StakeholderServiceLineItem",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by="StakeholderServiceLineItem.item_order",
    )
    payments = relationship("StakeholderServicePayment", back_populates="service")


class StakeholderServiceLineItem(Base):
    """Billable line on a service; copied into each generated payment."""

    __tablename__ = "stakeholder_service_line_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey("stakeholder_services.id", ondelete="CASCADE"), nullable=False, index=True)
    item_order = Column(Integer, nullable=False, default=0)
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    amount = Column(Numeric(12, 2), nullable=False, default=0)  # quantity * unit_price

    # Relationships
    service = relationship("StakeholderService", back_populates="line_items")
