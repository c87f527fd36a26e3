"""
Concentrator lookup endpoints (PPPoE sessions, corporate circuits).
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from linkwatch.api.deps import load_credentials
from linkwatch.db.base import get_async_session
from linkwatch.db.models import Concentrator
from linkwatch.repositories.link import ConcentratorRepository
from linkwatch.schemas.lookup import (
    CorporateLinkResponse,
    CorporateLookupRequest,
    PppoeLookupRequest,
    PppoeLookupResponse,
    PppoeSessionResponse,
)
from linkwatch.topology.correlator import SessionCorrelator, get_session_correlator

router = APIRouter(prefix="/concentrators")


async def _get_concentrator(session: AsyncSession, concentrator_id: int) -> Concentrator:
    concentrator = await ConcentratorRepository(session).get_by_id(concentrator_id)
    if concentrator is None:
        raise HTTPException(
            status_code=404, detail=f"Concentrator {concentrator_id} not found",
        )
    return concentrator


@router.post("/{concentrator_id}/pppoe-lookup", response_model=PppoeLookupResponse)
async def pppoe_lookup(
    concentrator_id: int,
    body: PppoeLookupRequest,
    session: AsyncSession = Depends(get_async_session),
    correlator: SessionCorrelator = Depends(get_session_correlator),
) -> PppoeLookupResponse:
    """Locate PPPoE sessions by username. Unlocated users are omitted."""
    concentrator = await _get_concentrator(session, concentrator_id)
    credentials = await load_credentials(session, concentrator.snmp_profile_id)

    found = await correlator.lookup_pppoe_sessions(
        concentrator, body.usernames, credentials,
    )
    return PppoeLookupResponse(
        concentrator_id=concentrator_id,
        requested=len(body.usernames),
        found=len(found),
        sessions=[PppoeSessionResponse.model_validate(info) for info in found.values()],
    )


@router.post(
    "/{concentrator_id}/corporate-lookup", response_model=CorporateLinkResponse,
)
async def corporate_lookup(
    concentrator_id: int,
    body: CorporateLookupRequest,
    session: AsyncSession = Depends(get_async_session),
    correlator: SessionCorrelator = Depends(get_session_correlator),
) -> CorporateLinkResponse:
    concentrator = await _get_concentrator(session, concentrator_id)
    credentials = await load_credentials(session, concentrator.snmp_profile_id)

    info = await correlator.lookup_corporate_link(
        concentrator, body.vlan_interface, credentials,
    )
    if info is None:
        raise HTTPException(
            status_code=404,
            detail=f"Interface {body.vlan_interface} not found on {concentrator.name}",
        )
    return CorporateLinkResponse.model_validate(info)
