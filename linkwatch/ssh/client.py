"""
SSH command execution for concentrators.

Older BRAS / router firmware only offers legacy key exchanges and CBC
ciphers, so the negotiated algorithm lists are widened to include them
(modern algorithms stay preferred). Host keys are accepted without
verification, like ``paramiko.AutoAddPolicy``.

paramiko is blocking; commands run in a worker thread.
"""
from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass

import paramiko

from linkwatch.core.config import settings

logger = logging.getLogger(__name__)

# Offered after paramiko's defaults, when this paramiko implements them
KEX_FALLBACKS = (
    "diffie-hellman-group-exchange-sha256",
    "diffie-hellman-group16-sha512",
    "diffie-hellman-group14-sha256",
    "diffie-hellman-group-exchange-sha1",
    "diffie-hellman-group14-sha1",
    "diffie-hellman-group1-sha1",
)

CIPHER_FALLBACKS = (
    "aes256-cbc",
    "aes192-cbc",
    "aes128-cbc",
    "3des-cbc",
)

_READ_CHUNK = 65536


class SshError(Exception):
    """Connection, authentication or command failure over SSH."""


@dataclass(frozen=True)
class SshTarget:
    host: str
    username: str
    password: str
    port: int = 22
    timeout: float | None = None

    @property
    def effective_timeout(self) -> float:
        return self.timeout or settings.ssh.timeout


def _widened(
    offered: tuple[str, ...], fallbacks: tuple[str, ...], supported: dict,
) -> tuple[str, ...]:
    extra = tuple(a for a in fallbacks if a in supported and a not in offered)
    return tuple(offered) + extra


def _widen_algorithms(transport: paramiko.Transport) -> None:
    """Append the legacy algorithms paramiko implements but does not offer."""
    options = transport.get_security_options()
    options.kex = _widened(options.kex, KEX_FALLBACKS, transport._kex_info)
    options.ciphers = _widened(options.ciphers, CIPHER_FALLBACKS, transport._cipher_info)


def run_command_sync(target: SshTarget, command: str) -> str:
    """Connect, authenticate with password, run one command, return stdout."""
    timeout = target.effective_timeout
    try:
        sock = socket.create_connection((target.host, target.port), timeout=timeout)
    except OSError as e:
        raise SshError(f"Cannot connect to {target.host}:{target.port}: {e}") from e

    transport = paramiko.Transport(sock)
    try:
        transport.banner_timeout = timeout
        transport.auth_timeout = timeout
        _widen_algorithms(transport)
        transport.start_client(timeout=timeout)
        transport.auth_password(target.username, target.password)

        channel = transport.open_session(timeout=timeout)
        channel.settimeout(timeout)
        channel.exec_command(command)

        chunks: list[bytes] = []
        while True:
            data = channel.recv(_READ_CHUNK)
            if not data:
                break
            chunks.append(data)
        channel.close()
        return b"".join(chunks).decode("utf-8", errors="replace")
    except paramiko.AuthenticationException as e:
        raise SshError(f"Authentication failed on {target.host}: {e}") from e
    except (paramiko.SSHException, OSError, EOFError) as e:
        raise SshError(f"SSH command on {target.host} failed: {e}") from e
    finally:
        transport.close()


class SshClient:
    """Async facade over :func:`run_command_sync`."""

    async def run_command(self, target: SshTarget, command: str) -> str:
        """
        Run ``command`` on ``target`` and return its output.

        Raises:
            SshError: on connection, auth, command failure or timeout.
        """
        timeout = target.effective_timeout
        logger.debug("SSH %s@%s:%s $ %s", target.username, target.host, target.port, command)
        try:
            # the thread cannot be cancelled; the socket timeout bounds it
            return await asyncio.wait_for(
                asyncio.to_thread(run_command_sync, target, command),
                timeout=timeout + 5,
            )
        except asyncio.TimeoutError as e:
            raise SshError(f"SSH command on {target.host} timed out after {timeout:.0f}s") from e
