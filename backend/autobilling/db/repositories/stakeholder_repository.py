"""
Stakeholder repository for database operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from autobilling.db.repositories.base_repository import BaseRepository
from autobilling.models.stakeholder import Stakeholder


class StakeholderRepository(BaseRepository[Stakeholder]):
    """Repository for stakeholder operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Stakeholder, session)
