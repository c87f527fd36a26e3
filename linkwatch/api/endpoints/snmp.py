"""
SNMP tooling endpoints: connectivity test and interface discovery.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from linkwatch.api.deps import load_credentials
from linkwatch.db.base import get_async_session
from linkwatch.schemas.snmp import (
    IfIndexValidateRequest,
    IfIndexValidationResponse,
    InterfaceIndexRequest,
    InterfaceSearchRequest,
    InterfaceSearchResponse,
    InterfaceStatusResponse,
    SnmpInterfaceResponse,
    SnmpTargetRequest,
    SnmpTestResponse,
)
from linkwatch.snmp.discovery import (
    InterfaceDiscovery,
    SnmpInterface,
    format_speed,
    get_interface_discovery,
)

router = APIRouter(prefix="/snmp")


def _interface_response(iface: SnmpInterface) -> SnmpInterfaceResponse:
    item = SnmpInterfaceResponse.model_validate(iface)
    item.speed = format_speed(iface.if_speed)
    return item


@router.post("/test", response_model=SnmpTestResponse)
async def test_connection(
    body: SnmpTargetRequest,
    session: AsyncSession = Depends(get_async_session),
    discovery: InterfaceDiscovery = Depends(get_interface_discovery),
) -> SnmpTestResponse:
    credentials = await load_credentials(session, body.profile_id)
    result = await discovery.test_connection(body.ip, credentials)
    return SnmpTestResponse.model_validate(result)


@router.post("/interfaces", response_model=list[SnmpInterfaceResponse])
async def list_interfaces(
    body: SnmpTargetRequest,
    session: AsyncSession = Depends(get_async_session),
    discovery: InterfaceDiscovery = Depends(get_interface_discovery),
) -> list[SnmpInterfaceResponse]:
    credentials = await load_credentials(session, body.profile_id)
    interfaces = await discovery.discover_interfaces(body.ip, credentials)
    return [_interface_response(i) for i in interfaces]


@router.post("/interfaces/search", response_model=InterfaceSearchResponse)
async def search_interface(
    body: InterfaceSearchRequest,
    session: AsyncSession = Depends(get_async_session),
    discovery: InterfaceDiscovery = Depends(get_interface_discovery),
) -> InterfaceSearchResponse:
    credentials = await load_credentials(session, body.profile_id)
    result = await discovery.find_interface_by_name(
        body.ip, credentials, body.if_name, body.if_descr, body.if_alias,
    )
    response = InterfaceSearchResponse(
        found=result.found,
        match_type=result.match_type,
        if_index=result.if_index,
        if_name=result.if_name,
        if_descr=result.if_descr,
        if_alias=result.if_alias,
        candidates=[_interface_response(i) for i in result.candidates],
    )
    return response


@router.post("/interfaces/status", response_model=InterfaceStatusResponse)
async def interface_status(
    body: InterfaceIndexRequest,
    session: AsyncSession = Depends(get_async_session),
    discovery: InterfaceDiscovery = Depends(get_interface_discovery),
) -> InterfaceStatusResponse:
    credentials = await load_credentials(session, body.profile_id)
    status = await discovery.get_interface_status(body.ip, credentials, body.if_index)
    if status is None:
        raise HTTPException(
            status_code=502,
            detail=f"No SNMP answer from {body.ip} for ifIndex {body.if_index}",
        )
    return InterfaceStatusResponse(
        if_index=body.if_index,
        oper_status=status.oper_status,
        admin_status=status.admin_status,
    )


@router.post("/interfaces/validate", response_model=IfIndexValidationResponse)
async def validate_interface(
    body: IfIndexValidateRequest,
    session: AsyncSession = Depends(get_async_session),
    discovery: InterfaceDiscovery = Depends(get_interface_discovery),
) -> IfIndexValidationResponse:
    """Check that a stored ifIndex still names the expected interface."""
    credentials = await load_credentials(session, body.profile_id)
    result = await discovery.validate_if_index(
        body.ip, credentials, body.if_index,
        body.expected_if_name, body.expected_if_descr,
    )
    return IfIndexValidationResponse.model_validate(result)
