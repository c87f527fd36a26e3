"""
Pydantic schemas for the collector endpoint.
"""
from pydantic import BaseModel


class CollectorRunResponse(BaseModel):
    total: int
    success: int
    failed: int
