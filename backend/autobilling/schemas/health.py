"""
Health check response schemas.
"""

from pydantic import BaseModel
from typing import Dict, Any, Optional


class HealthResponse(BaseModel):
    """Health check response schema."""
    status: str
    uptime: str
    checks: Dict[str, Any] = {}
    overdue_services: Optional[int] = None  # Due before today and still not billed
