"""
Notification repository for database operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from autobilling.db.repositories.base_repository import BaseRepository
from autobilling.models.notification import Notification


class NotificationRepository(BaseRepository[Notification]):
    """Repository for queued notifications."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)
