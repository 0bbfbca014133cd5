"""
Base service class.
Services contain business logic and coordinate repositories.
"""

from abc import ABC
from decimal import Decimal, ROUND_HALF_UP


class BaseService(ABC):
    """Base service class for all services."""

    CENT = Decimal("0.01")

    @classmethod
    def to_money(cls, value) -> Decimal:
        """Round an amount to cents, half up."""
        return Decimal(str(value)).quantize(cls.CENT, rounding=ROUND_HALF_UP)
