"""Connect entry points: resolve identity, dial, handshake, authenticate."""

import getpass
import logging
import socket
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import paramiko
from paramiko.ssh_exception import AuthenticationException, SSHException

from . import auth
from .auth import Credential
from .client import Client
from .exceptions import (
    AuthenticationFailedError,
    ConnectTimeoutError,
    HandshakeFailedError,
    HostUnreachableError,
    InvalidEndpointError,
    UsernameResolutionError,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 22
DEFAULT_TIMEOUT = 30.0


def current_username() -> str:
    """Return the login name of the invoking OS user."""
    return getpass.getuser()


def resolve_username(
    username: Optional[str],
    user_resolver: Callable[[], str] = current_username,
) -> str:
    """Return ``username`` or, when empty, the current OS user.

    Raises:
        UsernameResolutionError: If no username was given and the
            current user cannot be determined
    """
    if username:
        return username
    try:
        resolved = user_resolver()
    except (OSError, KeyError, ImportError) as e:
        raise UsernameResolutionError(
            f"Username wasn't specified and couldn't get current user: {e}"
        ) from e
    if not resolved:
        raise UsernameResolutionError("Username wasn't specified and current user is empty")
    return resolved


def split_host_port(address: str) -> Tuple[str, str]:
    """Split ``host:port`` or ``[host]:port`` into its parts.

    Raises:
        ValueError: If the address has no port or is malformed
    """
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address {address!r}")
        rest = address[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"missing port in address {address!r}")
        return address[1:end], rest[1:]

    colons = address.count(":")
    if colons == 0:
        raise ValueError(f"missing port in address {address!r}")
    if colons > 1:
        raise ValueError(f"too many colons in address {address!r}")
    host, port = address.split(":")
    return host, port


@dataclass(frozen=True)
class Endpoint:
    host: str
    port: int = DEFAULT_PORT

    @classmethod
    def parse(cls, address: str) -> "Endpoint":
        """Parse a host address, assuming port 22 when none is present."""
        try:
            host, port = split_host_port(address)
        except ValueError:
            host = address
            if host.startswith("[") and host.endswith("]"):
                host = host[1:-1]
            return cls(host, DEFAULT_PORT)

        if not port.isdigit() or not 0 < int(port) < 65536:
            raise InvalidEndpointError(f"Invalid port {port!r} in address {address!r}")
        return cls(host, int(port))

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


def normalize_endpoint(address: str) -> str:
    """Return ``address`` with the default port appended when it has none."""
    try:
        split_host_port(address)
    except ValueError:
        return str(Endpoint.parse(address))
    return address


def dial(endpoint: Endpoint, timeout: float) -> socket.socket:
    """Open a TCP connection to ``endpoint`` bounded by ``timeout`` seconds."""
    try:
        return socket.create_connection((endpoint.host, endpoint.port), timeout=timeout)
    except socket.timeout as e:
        logger.error(f"Connection to {endpoint} timed out after {timeout}s")
        raise ConnectTimeoutError(f"Timed out connecting to {endpoint} after {timeout}s") from e
    except OSError as e:
        logger.error(f"Connection failed: {e}")
        raise HostUnreachableError(f"Cannot connect to {endpoint}: {e}") from e


def handshake(sock: socket.socket, username: str, credential: Credential) -> paramiko.Transport:
    """Run the SSH handshake over ``sock`` and authenticate ``username``."""
    transport = paramiko.Transport(sock)
    try:
        transport.start_client()
        credential.authenticate(transport, username)
        if not transport.is_authenticated():
            raise AuthenticationException("Server requires further authentication")
        return transport
    except AuthenticationException as e:
        transport.close()
        logger.error(f"Authentication failed: {e}")
        raise AuthenticationFailedError(f"Authentication failed: {e}") from e
    except SSHException as e:
        transport.close()
        logger.error(f"SSH error: {e}")
        raise HandshakeFailedError(f"SSH error: {e}") from e
    except (EOFError, OSError) as e:
        transport.close()
        logger.error(f"Connection lost during handshake: {e}")
        raise HandshakeFailedError(f"Connection lost during handshake: {e}") from e


def connect(
    host: str,
    username: Optional[str],
    credential: Credential,
    timeout: float = DEFAULT_TIMEOUT,
    user_resolver: Callable[[], str] = current_username,
) -> Client:
    """Open an authenticated SSH session.

    Args:
        host: Remote host, optionally with ``:port`` (default 22)
        username: Login name; empty means the current OS user
        credential: The single credential offered to the server
        timeout: Dial timeout in seconds
        user_resolver: Returns the current OS user when ``username`` is empty

    Returns:
        Connected Client owning the transport

    Raises:
        SSHConnectionError: Or one of its subclasses for every failure
    """
    try:
        username = resolve_username(username, user_resolver)
        endpoint = Endpoint.parse(host)

        logger.info(f"Connecting to {username}@{endpoint}")
        sock = dial(endpoint, timeout)
        try:
            transport = handshake(sock, username, credential)
        except Exception:
            sock.close()
            raise
    finally:
        credential.close()

    logger.info("SSH connection established successfully")
    return Client(transport, username=username, endpoint=str(endpoint))


def connect_with_password(
    host: str,
    username: Optional[str],
    password: str,
    timeout: float = DEFAULT_TIMEOUT,
    user_resolver: Callable[[], str] = current_username,
) -> Client:
    """Connect with a password. An empty username means the current user."""
    return connect(host, username, auth.password_auth(password), timeout, user_resolver)


def connect_with_key(
    host: str,
    username: Optional[str],
    private_key: Union[str, bytes],
    timeout: float = DEFAULT_TIMEOUT,
    user_resolver: Callable[[], str] = current_username,
) -> Client:
    """Connect with in-memory private key data (PEM or OpenSSH format)."""
    return connect(host, username, auth.key_auth(private_key), timeout, user_resolver)


def connect_with_key_file(
    host: str,
    username: Optional[str],
    key_path: str = "",
    timeout: float = DEFAULT_TIMEOUT,
    user_resolver: Callable[[], str] = current_username,
) -> Client:
    """Connect with a private key file, ``~/.ssh/id_rsa`` when ``key_path`` is empty."""
    return connect(host, username, auth.key_file_auth(key_path), timeout, user_resolver)


def connect_with_ssh_agent(
    host: str,
    username: Optional[str],
    timeout: float = DEFAULT_TIMEOUT,
    socket_path: Optional[str] = None,
    user_resolver: Callable[[], str] = current_username,
) -> Client:
    """Connect with the keys of the ssh-agent at ``socket_path`` or ``$SSH_AUTH_SOCK``.

    ``timeout`` also bounds each request to the agent.
    """
    return connect(host, username, auth.agent_auth(socket_path, timeout=timeout), timeout, user_resolver)
