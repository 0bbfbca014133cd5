"""
Base controller class.
Controllers coordinate services and return Pydantic schemas.
"""

from abc import ABC
from datetime import date
from typing import Optional


class BaseController(ABC):
    """Base controller class for all controllers."""

    @staticmethod
    def resolve_run_date(requested: Optional[date] = None) -> date:
        """Use the requested date, or the current local date when none is given."""
        return requested or date.today()
