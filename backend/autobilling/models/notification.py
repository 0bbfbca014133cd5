"""
Notification model.
Rows are enqueued here and delivered by a separate worker.
"""

from sqlalchemy import Column, String, Integer, DateTime, JSON, func

from autobilling.db.base import Base


class Notification(Base):
    """Queued notification addressed to company employees or stakeholder contacts."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(String(2000), nullable=False)
    reference_table = Column(String(100), nullable=True)  # e.g., "stakeholder_service_payments"
    reference_id = Column(Integer, nullable=True)
    recipients = Column(JSON, nullable=True, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
