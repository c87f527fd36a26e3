"""Tests for SNMP credentials, USM resolution and session lifecycle."""
from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from linkwatch.core.enums import SecurityLevel, SnmpVersion
from linkwatch.snmp.engine import (
    NO_AUTH,
    NO_PRIV,
    SnmpCredentials,
    SnmpError,
    SnmpSession,
    SnmpSessionClosedError,
    SnmpTimeoutError,
    normalize_oid,
    resolve_usm,
)


# ── Credentials ──────────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1", SnmpVersion.V1),
        ("v1", SnmpVersion.V1),
        ("2c", SnmpVersion.V2C),
        ("v2c", SnmpVersion.V2C),
        ("V3", SnmpVersion.V3),
        (None, SnmpVersion.V2C),
        ("bogus", SnmpVersion.V2C),
    ],
)
def test_version_parse(raw, expected):
    assert SnmpVersion.parse(raw) is expected


def test_safety_timeout_adds_margin():
    creds = SnmpCredentials(timeout=5000)
    assert creds.safety_timeout == pytest.approx(7.0)


def test_normalize_oid():
    assert normalize_oid(" .1.3.6.1.2.1. ") == "1.3.6.1.2.1"


# ── USM ──────────────────────────────────────────────────────────


def test_auth_priv_keeps_both_protocols():
    usm = resolve_usm(SnmpCredentials(
        version="3", security_level="authPriv",
        auth_protocol="sha", priv_protocol="aes",
    ))
    assert usm.level is SecurityLevel.AUTH_PRIV
    assert usm.auth_protocol == "usmHMACSHAAuthProtocol"
    assert usm.priv_protocol == "usmAesCfb128Protocol"


def test_auth_no_priv_drops_privacy():
    usm = resolve_usm(SnmpCredentials(
        version="3", security_level="authNoPriv",
        auth_protocol="MD5", priv_protocol="DES",
    ))
    assert usm.auth_protocol == "usmHMACMD5AuthProtocol"
    assert usm.priv_protocol == NO_PRIV


def test_no_auth_no_priv_drops_both():
    usm = resolve_usm(SnmpCredentials(
        version="3", security_level="noAuthNoPriv",
        auth_protocol="SHA", priv_protocol="AES",
    ))
    assert (usm.auth_protocol, usm.priv_protocol) == (NO_AUTH, NO_PRIV)


def test_privacy_without_auth_is_dropped():
    usm = resolve_usm(SnmpCredentials(
        version="3", security_level="authPriv",
        auth_protocol="unknown", priv_protocol="AES",
    ))
    assert (usm.auth_protocol, usm.priv_protocol) == (NO_AUTH, NO_PRIV)


def test_v3_auth_data_uses_usm_user():
    from pysnmp.hlapi.v3arch.asyncio import UsmUserData

    session = SnmpSession("10.0.0.1", SnmpCredentials(
        version="3", security_level="authPriv", username="monitor",
        auth_protocol="SHA", auth_password="authpass123",
        priv_protocol="AES", priv_password="privpass123",
    ))
    assert isinstance(session._auth_data(), UsmUserData)


def test_v2c_auth_data_uses_community():
    from pysnmp.hlapi.v3arch.asyncio import CommunityData

    session = SnmpSession("10.0.0.1", SnmpCredentials(version="2c", community="ro"))
    auth = session._auth_data()
    assert isinstance(auth, CommunityData)
    assert auth.message_processing_model == 1


# ── Session lifecycle ────────────────────────────────────────────


def test_close_is_idempotent():
    session = SnmpSession("10.0.0.1", SnmpCredentials())
    engine = MagicMock()
    session._engine = engine

    session.close()
    session.close()

    assert session.closed
    engine.close_dispatcher.assert_called_once()


@pytest.mark.asyncio
async def test_closed_session_rejects_requests():
    session = SnmpSession("10.0.0.1", SnmpCredentials())
    session.close()
    with pytest.raises(SnmpSessionClosedError):
        await session.get("1.3.6.1.2.1.1.1.0")


@pytest.mark.asyncio
async def test_guarded_times_out_and_closes():
    session = SnmpSession("10.0.0.1", SnmpCredentials())

    outcome = await session.guarded(asyncio.sleep(5), timeout=0.01)

    assert outcome.timed_out
    assert not outcome.ok
    assert session.closed


@pytest.mark.asyncio
async def test_guarded_maps_snmp_errors():
    session = SnmpSession("10.0.0.1", SnmpCredentials())

    async def _timeout():
        raise SnmpTimeoutError("no response")

    async def _error():
        raise SnmpError("authorizationError")

    timed_out = await session.guarded(_timeout())
    failed = await session.guarded(_error())

    assert timed_out.timed_out and timed_out.value is None
    assert failed.error == "authorizationError"
    assert not session.closed


@pytest.mark.asyncio
async def test_guarded_returns_value():
    session = SnmpSession("10.0.0.1", SnmpCredentials())

    async def _answer():
        return {"1.3.6.1.2.1.1.5.0": "core-01"}

    outcome = await session.guarded(_answer())
    assert outcome.ok
    assert outcome.value == {"1.3.6.1.2.1.1.5.0": "core-01"}


@pytest.mark.asyncio
async def test_guarded_maps_pysnmp_errors():
    from pyasn1.error import PyAsn1Error
    from pysnmp.error import PySnmpError

    session = SnmpSession("10.0.0.1", SnmpCredentials())

    async def _unresolvable():
        raise PySnmpError("Can't resolve node name")

    async def _bad_value():
        raise PyAsn1Error("malformed value")

    unresolved = await session.guarded(_unresolvable())
    malformed = await session.guarded(_bad_value())

    assert unresolved.error == "Can't resolve node name"
    assert malformed.error == "malformed value"
    assert not session.closed


@pytest.mark.asyncio
async def test_malformed_oid_get_is_contained():
    session = SnmpSession("127.0.0.1", SnmpCredentials(timeout=300, retries=0))
    try:
        outcome = await session.guarded(session.get("1.3.6.1.4.1.abc.0"))
    finally:
        session.close()

    assert not outcome.ok


@pytest.mark.asyncio
async def test_malformed_oid_walk_returns_no_rows():
    session = SnmpSession("127.0.0.1", SnmpCredentials(timeout=300, retries=0))
    try:
        rows = await session.walk_within("1.3.6.1.4.1.abc", timeout=2)
    finally:
        session.close()

    assert rows == []
