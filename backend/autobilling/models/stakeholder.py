"""
Stakeholder model.
Only the identity fields copied into payment vendor snapshots are mapped here.
"""

from sqlalchemy import Column, String, Integer, JSON
from sqlalchemy.orm import relationship

from autobilling.db.base import Base


class Stakeholder(Base):
    """Vendor or customer organization the company does business with."""

    __tablename__ = "stakeholders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(1000), nullable=True)
    contact_persons = Column(JSON, nullable=True, default=list)

    # Relationships
    services = relationship("StakeholderService", back_populates="stakeholder")
