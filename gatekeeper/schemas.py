"""
Pydantic schemas for API responses.

The check response has a fixed shape: every field is present (null or 0)
even when some checks failed. ``errors`` only appears when something failed.
"""

from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class CheckResponse(BaseModel):
    """Result of a gate check"""
    block: Optional[bool] = None
    block_auto: Optional[bool] = None
    block_host: Optional[bool] = None
    block_period: Optional[bool] = None
    block_ip: Optional[bool] = None
    requests: int = 0
    visits: int = 0
    visits_drops: int = 0
    visits_all: int = 0
    ip: Optional[str] = None
    errors: Optional[List[str]] = None

    def as_payload(self) -> Dict[str, Any]:
        """Serialize for the wire, dropping ``errors`` when there are none"""
        payload = self.model_dump()
        if not payload.get("errors"):
            payload.pop("errors", None)
        return payload


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    database: Dict[str, Any]
