"""
Collector endpoint - run a monitoring sweep on demand.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from linkwatch.schemas.collector import CollectorRunResponse
from linkwatch.services.collector import Collector, get_collector

router = APIRouter(prefix="/collector")


@router.post("/run", response_model=CollectorRunResponse)
async def run_collector(
    collector: Collector = Depends(get_collector),
) -> CollectorRunResponse:
    """Collect all monitored links now and report the counts."""
    result = await collector.collect_all()
    return CollectorRunResponse(**result)
