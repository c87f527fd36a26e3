"""
Pydantic schemas for SNMP tooling endpoints.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SnmpTargetRequest(BaseModel):
    ip: str = Field(..., description="Device IP", examples=["10.0.0.1"])
    profile_id: Optional[int] = Field(
        None, description="SNMP profile; defaults apply when omitted",
    )


class InterfaceSearchRequest(SnmpTargetRequest):
    if_name: str = Field(..., min_length=1, examples=["ether1"])
    if_descr: Optional[str] = None
    if_alias: Optional[str] = None


class InterfaceIndexRequest(SnmpTargetRequest):
    if_index: int = Field(..., ge=1, examples=[3])


class IfIndexValidateRequest(InterfaceIndexRequest):
    expected_if_name: Optional[str] = None
    expected_if_descr: Optional[str] = None


class SnmpTestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    response_time_ms: int
    sys_descr: Optional[str] = None
    sys_name: Optional[str] = None
    uptime: Optional[str] = None
    error: Optional[str] = None


class SnmpInterfaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    if_index: int
    if_name: str
    if_descr: str
    if_alias: str
    if_speed: int
    speed: str = ""
    if_oper_status: str
    if_admin_status: str


class InterfaceSearchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    found: bool
    match_type: str
    if_index: Optional[int] = None
    if_name: Optional[str] = None
    if_descr: Optional[str] = None
    if_alias: Optional[str] = None
    candidates: list[SnmpInterfaceResponse] = Field(default_factory=list)


class InterfaceStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    if_index: int
    oper_status: str
    admin_status: str


class IfIndexValidationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    valid: bool
    current_if_name: Optional[str] = None
    current_if_descr: Optional[str] = None
