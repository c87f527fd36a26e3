"""
Pydantic schemas for concentrator lookups.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PppoeLookupRequest(BaseModel):
    usernames: list[str] = Field(
        ...,
        min_length=1,
        description="PPPoE usernames to locate",
        examples=[["client01", "client02"]],
    )


class PppoeSessionResponse(BaseModel):
    """A located subscriber session."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    ip_address: Optional[str] = None
    mac_address: Optional[str] = None
    if_index: Optional[int] = None
    if_name: Optional[str] = None
    if_alias: Optional[str] = None


class PppoeLookupResponse(BaseModel):
    concentrator_id: int
    requested: int
    found: int
    sessions: list[PppoeSessionResponse]


class CorporateLookupRequest(BaseModel):
    vlan_interface: str = Field(
        ...,
        min_length=1,
        description="Interface name as shown in ifName / ifDescr",
        examples=["vlan1203"],
    )


class CorporateLinkResponse(BaseModel):
    """
    Corporate circuit on a VLAN interface.

    ``ip_address`` comes from ARP, ``ip_block`` from the public /32 route.
    """

    model_config = ConfigDict(from_attributes=True)

    vlan_interface: str
    if_index: int
    ip_address: Optional[str] = None
    mac_address: Optional[str] = None
    ip_block: Optional[str] = None
