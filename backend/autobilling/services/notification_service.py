"""
Notification service.
Enqueues notification rows; delivery happens elsewhere.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession

from autobilling.services.base_service import BaseService
from autobilling.db.repositories.notification_repository import NotificationRepository
from autobilling.models.notification import Notification
from autobilling.schemas.billing import DueService, PaymentRecord

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """Service for queuing notifications."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.notification_repo = NotificationRepository(session)

    async def enqueue_payment_created(
        self,
        service: DueService,
        payment: PaymentRecord,
    ) -> Notification:
        """Queue a notification announcing an auto-generated payment."""
        recipients = []
        contact_persons = service.stakeholder.contact_persons if service.stakeholder else None
        for contact in contact_persons if isinstance(contact_persons, list) else []:
            if isinstance(contact, dict) and contact.get("email"):
                recipients.append(contact["email"])

        notification = await self.notification_repo.create(
            company_id=service.company_id,
            title="Payment generated",
            message=(
                f"A payment of {payment.total_amount} {service.currency} was generated for "
                f"{service.service_name} ({payment.billing_period_start.isoformat()} to "
                f"{payment.billing_period_end.isoformat()})."
            ),
            reference_table="stakeholder_service_payments",
            reference_id=payment.id,
            recipients=recipients,
        )
        await self.session.commit()

        logger.info(
            f"Notification queued for payment {payment.id}",
            extra={"payment_id": payment.id, "recipient_count": len(recipients)},
        )
        return notification
