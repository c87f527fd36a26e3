"""
Shared endpoint dependencies.
"""
from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from linkwatch.repositories.link import SnmpProfileRepository
from linkwatch.snmp.engine import SnmpCredentials


async def load_credentials(
    session: AsyncSession, profile_id: int | None,
) -> SnmpCredentials:
    """Credentials of an SNMP profile, or the configured defaults when unset."""
    if profile_id is None:
        return SnmpCredentials.default()
    profile = await SnmpProfileRepository(session).get_by_id(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"SNMP profile {profile_id} not found")
    return profile.to_credentials()
