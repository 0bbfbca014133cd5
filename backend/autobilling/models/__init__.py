"""
Database models.
Import all models here to ensure they're registered with Base.
"""

from autobilling.models.stakeholder import Stakeholder
from autobilling.models.stakeholder_service import (
    StakeholderService,
    StakeholderServiceLineItem,
    ServiceDirection,
    ServiceType,
    ServiceStatus,
    BillingCycleType,
)
from autobilling.models.service_payment import (
    StakeholderServicePayment,
    StakeholderPaymentLineItem,
    PaymentStatus,
)
from autobilling.models.notification import Notification

__all__ = [
    "Stakeholder",
    "StakeholderService",
    "StakeholderServiceLineItem",
    "ServiceDirection",
    "ServiceType",
    "ServiceStatus",
    "BillingCycleType",
    "StakeholderServicePayment",
    "StakeholderPaymentLineItem",
    "PaymentStatus",
    "Notification",
]
