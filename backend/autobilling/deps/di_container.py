"""
Dependency injection container using dependency-injector.
Wires the sessionmaker, services and controllers.
"""

from dependency_injector import containers, providers

from autobilling.core.config import settings
from autobilling.db.session import get_sessionmaker
from autobilling.services.health_service import HealthService
from autobilling.services.recurring_payment_service import RecurringPaymentService
from autobilling.controllers.health_controller import HealthController
from autobilling.controllers.auto_billing_controller import AutoBillingController


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    # Configuration
    config = providers.Configuration()

    # Resolved lazily so tests and the CLI can swap the engine first
    session_maker = providers.Callable(get_sessionmaker)

    # Services
    health_service = providers.Singleton(
        HealthService,
    )

    recurring_payment_service = providers.Factory(
        RecurringPaymentService,
        session_maker=session_maker,
        notifications_enabled=config.notifications_enabled,
        batch_limit=config.batch_limit,
    )

    # Controllers
    health_controller = providers.Factory(
        HealthController,
        health_service=health_service,
    )

    auto_billing_controller = providers.Factory(
        AutoBillingController,
        session_maker=session_maker,
        recurring_payment_service=recurring_payment_service,
    )


# Global container instance
_container: Container = None


def build_container() -> Container:
    """Create a container configured from application settings."""
    container = Container()
    container.config.from_dict({
        "database_url": settings.DATABASE_URL,
        "notifications_enabled": settings.AUTO_BILLING_NOTIFICATIONS_ENABLED,
        "batch_limit": settings.AUTO_BILLING_BATCH_LIMIT,
    })
    return container


def get_container() -> Container:
    """Get the global dependency injection container."""
    global _container
    if _container is None:
        _container = build_container()
    return _container
