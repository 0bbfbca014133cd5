"""
Health service.
Reports process uptime, database connectivity and the auto-billing backlog.
"""

import time
from datetime import date
from autobilling.services.base_service import BaseService
from autobilling.schemas.health import HealthResponse


class HealthService(BaseService):
    """Service for health check operations."""

    def __init__(self):
        self.start_time = time.time()

    async def get_health(self) -> HealthResponse:
        """
        Get system health status.

        A non-zero overdue count means earlier runs left services unbilled
        (missing line items, per-service errors, or a skipped tick).
        """
        uptime_seconds = int(time.time() - self.start_time)
        uptime_str = f"PT{uptime_seconds}S"  # ISO 8601 duration format

        checks = {}
        overdue_services = None

        try:
            from autobilling.db.session import get_sessionmaker
            from autobilling.db.repositories.health_repository import HealthRepository

            async with get_sessionmaker()() as session:
                repo = HealthRepository(session=session)
                db_status = await repo.check_database()
                checks["database"] = "ok" if db_status else "error"
                if db_status:
                    overdue_services = await repo.count_overdue_services(date.today())
        except Exception as e:
            checks["database"] = f"error: {str(e)}"

        status = "ok" if all(check == "ok" for check in checks.values()) else "degraded"

        return HealthResponse(
            status=status,
            uptime=uptime_str,
            checks=checks,
            overdue_services=overdue_services,
        )
