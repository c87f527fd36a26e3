"""
SNMP session factory - pysnmp asyncio wrapper.

One ``SnmpSession`` per (target, credential profile). Provides:
- get()         - one or more scalar OIDs in a single request
- walk()        - a whole OID subtree
- walk_within() - walk bounded by a deadline, keeps partial rows
- guarded()     - races any session call against the safety timeout

Sessions are closable exactly once; close() on a closed session is a no-op.

NOTE: pysnmp imports are deferred to the methods that need them so that
credential handling and the value codec can be used without a network stack.
Uses the pysnmp 7.x ``v3arch.asyncio`` API.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from linkwatch.core.config import settings
from linkwatch.core.enums import SecurityLevel, SnmpVersion

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Profile algorithm names -> pysnmp protocol constants
AUTH_PROTOCOLS = {
    "MD5": "usmHMACMD5AuthProtocol",
    "SHA": "usmHMACSHAAuthProtocol",
}
PRIV_PROTOCOLS = {
    "DES": "usmDESPrivProtocol",
    "AES": "usmAesCfb128Protocol",
}
NO_AUTH = "usmNoAuthProtocol"
NO_PRIV = "usmNoPrivProtocol"

EMPTY_VALUE_TYPES = frozenset({"NoSuchObject", "NoSuchInstance", "EndOfMibView"})


class SnmpError(Exception):
    """Base SNMP error."""


class SnmpTimeoutError(SnmpError):
    """SNMP request timed out after all retries."""


class SnmpNoSuchObjectError(SnmpError):
    """Requested OID does not exist on the device."""


class SnmpSessionClosedError(SnmpError):
    """Operation attempted on a session that was already closed."""


def _library_errors() -> tuple[type[Exception], ...]:
    """pysnmp / pyasn1 failures: unresolvable OIDs, malformed values."""
    from pyasn1.error import PyAsn1Error
    from pysnmp.error import PySnmpError

    return PySnmpError, PyAsn1Error


@dataclass(frozen=True)
class SnmpCredentials:
    """
    Credential profile for one SNMP target.

    ``timeout`` is in milliseconds, as stored on the profile.
    """

    version: str = "2c"
    port: int = 161
    community: str | None = None
    security_level: str | None = None
    auth_protocol: str | None = None
    auth_password: str | None = None
    priv_protocol: str | None = None
    priv_password: str | None = None
    username: str | None = None
    timeout: int = 5000
    retries: int = 1

    @classmethod
    def default(cls) -> SnmpCredentials:
        """v2c profile used when a device has none configured."""
        return cls(
            version="2c",
            port=settings.snmp.default_port,
            community=settings.snmp.default_community,
            timeout=settings.snmp.default_timeout_ms,
            retries=settings.snmp.default_retries,
        )

    @property
    def snmp_version(self) -> SnmpVersion:
        return SnmpVersion.parse(self.version)

    @property
    def safety_timeout(self) -> float:
        """Seconds after which a pending call is abandoned and the session closed."""
        return (self.timeout + settings.snmp.safety_margin_ms) / 1000


@dataclass(frozen=True)
class UsmSettings:
    """Resolved SNMPv3 security parameters (pysnmp constant names)."""

    level: SecurityLevel
    auth_protocol: str
    priv_protocol: str


def resolve_usm(credentials: SnmpCredentials) -> UsmSettings:
    """
    Map profile names to USM protocol constants.

    Unknown algorithm names resolve to "none". The security level caps what
    is used: noAuthNoPriv drops both, authNoPriv drops privacy. Privacy
    without authentication is not valid USM, so it is dropped as well.
    """
    level = SecurityLevel.parse(credentials.security_level)
    auth = AUTH_PROTOCOLS.get((credentials.auth_protocol or "").upper(), NO_AUTH)
    priv = PRIV_PROTOCOLS.get((credentials.priv_protocol or "").upper(), NO_PRIV)

    if level is SecurityLevel.NO_AUTH_NO_PRIV:
        auth, priv = NO_AUTH, NO_PRIV
    elif level is SecurityLevel.AUTH_NO_PRIV:
        priv = NO_PRIV
    if auth == NO_AUTH:
        priv = NO_PRIV

    return UsmSettings(level=level, auth_protocol=auth, priv_protocol=priv)


@dataclass(frozen=True)
class SnmpOutcome(Generic[T]):
    """Result of a guarded SNMP call: a value, a timeout, or an error."""

    value: T | None = None
    timed_out: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.error is None


class SnmpSession:
    """
    A versioned SNMP session towards one target.

    The underlying pysnmp engine and UDP transport are created lazily on the
    first request and released by close().
    """

    def __init__(self, target_ip: str, credentials: SnmpCredentials) -> None:
        self.target_ip = target_ip
        self.credentials = credentials
        self.closed = False
        self._engine: Any = None
        self._transport: Any = None

    async def __aenter__(self) -> SnmpSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def safety_timeout(self) -> float:
        return self.credentials.safety_timeout

    # ── pysnmp plumbing ──────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self.closed:
            raise SnmpSessionClosedError(
                f"SNMP session to {self.target_ip} is closed"
            )

    def _get_engine(self) -> Any:
        if self._engine is None:
            from pysnmp.hlapi.v3arch.asyncio import SnmpEngine

            self._engine = SnmpEngine()
        return self._engine

    def _auth_data(self) -> Any:
        """CommunityData for v1/v2c, UsmUserData for v3."""
        from pysnmp.hlapi.v3arch import asyncio as hlapi

        creds = self.credentials
        version = creds.snmp_version
        if version is SnmpVersion.V3:
            usm = resolve_usm(creds)
            kwargs: dict[str, Any] = {}
            if usm.auth_protocol != NO_AUTH:
                kwargs["authKey"] = creds.auth_password or ""
                kwargs["authProtocol"] = getattr(hlapi, usm.auth_protocol)
            if usm.priv_protocol != NO_PRIV:
                kwargs["privKey"] = creds.priv_password or ""
                kwargs["privProtocol"] = getattr(hlapi, usm.priv_protocol)
            return hlapi.UsmUserData(creds.username or "", **kwargs)

        return hlapi.CommunityData(
            creds.community or settings.snmp.default_community,
            mpModel=version.mp_model,
        )

    async def _get_transport(self) -> Any:
        if self._transport is None:
            from pysnmp.error import PySnmpError
            from pysnmp.hlapi.v3arch.asyncio import UdpTransportTarget

            try:
                self._transport = await UdpTransportTarget.create(
                    (self.target_ip, self.credentials.port),
                    timeout=self.credentials.timeout / 1000,
                    retries=self.credentials.retries,
                )
            except PySnmpError as e:
                raise SnmpError(f"Bad SNMP target {self.target_ip}: {e}") from e
        return self._transport

    def _raise_for_error(
        self, op: str, error_indication: Any, error_status: Any, detail: str,
    ) -> None:
        if error_indication:
            err_str = str(error_indication)
            if "timeout" in err_str.lower() or "request" in err_str.lower():
                raise SnmpTimeoutError(
                    f"SNMP {op} timeout: {self.target_ip} {detail}"
                )
            raise SnmpError(f"SNMP {op} error: {err_str}")
        if error_status:
            raise SnmpError(
                f"SNMP {op} error status: {error_status.prettyPrint()} ({detail})"
            )

    # ── Operations ───────────────────────────────────────────────

    async def get(self, *oids: str) -> dict[str, Any]:
        """
        SNMP GET for one or more scalar OIDs.

        Returns:
            {oid_str: raw pysnmp value}. OIDs answered with
            noSuchObject / noSuchInstance / endOfMibView are left out.

        Raises:
            SnmpTimeoutError: if request times out.
            SnmpError: on other SNMP errors.
        """
        self._ensure_open()
        from pysnmp.hlapi.v3arch.asyncio import (
            ContextData,
            ObjectIdentity,
            ObjectType,
            get_cmd,
        )

        engine = self._get_engine()
        transport = await self._get_transport()
        object_types = [
            ObjectType(ObjectIdentity(normalize_oid(oid))) for oid in oids
        ]

        error_indication, error_status, _error_index, var_binds = await get_cmd(
            engine,
            self._auth_data(),
            transport,
            ContextData(),
            *object_types,
            lookupMib=False,
        )
        self._raise_for_error("GET", error_indication, error_status, f"OIDs={oids}")

        result: dict[str, Any] = {}
        for oid, val in var_binds:
            if val.__class__.__name__ in EMPTY_VALUE_TYPES:
                continue  # caller handles missing data
            result[str(oid)] = val
        return result

    async def walk(self, oid_prefix: str) -> list[tuple[str, Any]]:
        """
        Full SNMP walk of a subtree.

        Returns:
            List of (oid_str, raw value) tuples within the subtree.
        """
        rows: list[tuple[str, Any]] = []
        await self._walk_into(oid_prefix, rows)
        return rows

    async def walk_within(
        self, oid_prefix: str, timeout: float,
    ) -> list[tuple[str, Any]]:
        """
        Walk a subtree for at most ``timeout`` seconds.

        Never raises: on timeout or SNMP error the rows collected so far are
        returned.
        """
        rows: list[tuple[str, Any]] = []
        try:
            await asyncio.wait_for(
                self._walk_into(oid_prefix, rows), timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "SNMP walk %s on %s exceeded %.0fs, keeping %d rows",
                oid_prefix, self.target_ip, timeout, len(rows),
            )
        except (SnmpError, OSError, ValueError, *_library_errors()) as e:
            logger.warning(
                "SNMP walk %s on %s failed: %s (%d rows)",
                oid_prefix, self.target_ip, e, len(rows),
            )
        return rows

    async def _walk_into(
        self, oid_prefix: str, rows: list[tuple[str, Any]],
    ) -> None:
        """Internal walk implementation, appends to ``rows`` as it goes."""
        self._ensure_open()
        from pysnmp.hlapi.v3arch.asyncio import (
            ContextData,
            ObjectIdentity,
            ObjectType,
            walk_cmd,
        )

        prefix = normalize_oid(oid_prefix)
        engine = self._get_engine()
        transport = await self._get_transport()

        async for error_indication, error_status, _idx, var_binds in walk_cmd(
            engine,
            self._auth_data(),
            transport,
            ContextData(),
            ObjectType(ObjectIdentity(prefix)),
            lexicographicMode=False,
            lookupMib=False,
        ):
            self._raise_for_error(
                "WALK", error_indication, error_status, f"prefix={prefix}",
            )
            for oid, val in var_binds:
                oid_str = str(oid)
                # walked past our subtree
                if not oid_str.startswith(prefix + "."):
                    return
                if val.__class__.__name__ in EMPTY_VALUE_TYPES:
                    return
                rows.append((oid_str, val))

    async def guarded(
        self, awaitable: Awaitable[T], timeout: float | None = None,
    ) -> SnmpOutcome[T]:
        """
        Await an operation, bounded by the profile safety timeout.

        On timeout the session is force-closed. Never raises SnmpError.
        """
        limit = timeout if timeout is not None else self.safety_timeout
        try:
            value = await asyncio.wait_for(awaitable, timeout=limit)
        except asyncio.TimeoutError:
            logger.warning(
                "SNMP request to %s exceeded %.1fs, closing session",
                self.target_ip, limit,
            )
            self.close()
            return SnmpOutcome(timed_out=True)
        except SnmpTimeoutError as e:
            logger.debug("SNMP timeout on %s: %s", self.target_ip, e)
            return SnmpOutcome(timed_out=True)
        except SnmpError as e:
            return SnmpOutcome(error=str(e))
        except (OSError, ValueError) as e:
            # unresolvable host, socket errors
            logger.error("SNMP request to %s failed: %s", self.target_ip, e)
            return SnmpOutcome(error=str(e))
        except _library_errors() as e:
            # malformed OIDs or values rejected by pysnmp
            logger.error("SNMP request to %s rejected: %s", self.target_ip, e)
            return SnmpOutcome(error=str(e))
        return SnmpOutcome(value=value)

    def close(self) -> None:
        """Release the engine dispatcher. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        engine, self._engine, self._transport = self._engine, None, None
        if engine is None:
            return
        try:
            engine.close_dispatcher()
        except Exception as e:
            logger.debug("Error closing SNMP session to %s: %s", self.target_ip, e)


def normalize_oid(oid: str) -> str:
    """Strip whitespace and leading/trailing dots (".1.3.6..." -> "1.3.6...")."""
    return oid.strip().strip(".")


def create_session(
    target_ip: str, credentials: SnmpCredentials | None = None,
) -> SnmpSession:
    """Build a session for ``target_ip`` from a credential profile."""
    return SnmpSession(target_ip, credentials or SnmpCredentials.default())


class SnmpSessionFactory:
    """Creates sessions; injected into samplers and the correlator."""

    def create(
        self, target_ip: str, credentials: SnmpCredentials | None = None,
    ) -> SnmpSession:
        return create_session(target_ip, credentials)
