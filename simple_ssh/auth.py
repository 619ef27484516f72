"""Credential selection for SSH connections.

Each helper in this module builds exactly one credential for one connect
call. Credentials know how to authenticate an already negotiated
``paramiko.Transport``; they never dial anything themselves.
"""

import io
import logging
import os
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

import paramiko
from paramiko.agent import AgentSSH
from paramiko.ssh_exception import AuthenticationException, SSHException

from .exceptions import (
    AgentUnavailableError,
    InvalidKeyError,
    KeyFileError,
    KeyFileNotFoundError,
)

logger = logging.getLogger(__name__)

AGENT_SOCKET_ENV = "SSH_AUTH_SOCK"
DEFAULT_KEY_FILE = Path(".ssh") / "id_rsa"
AGENT_TIMEOUT = 10.0

# Tried in order; the first class that accepts the key data wins.
KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


class Credential:
    """Authentication proof used for a single connect attempt."""

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release anything the credential holds open."""


@dataclass(frozen=True, repr=False)
class PasswordCredential(Credential):
    password: str

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        transport.auth_password(username, self.password)

    def __repr__(self) -> str:
        return "PasswordCredential(password=***)"


@dataclass(frozen=True)
class KeyCredential(Credential):
    key: paramiko.PKey

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        transport.auth_publickey(username, self.key)


class _SocketAgent(AgentSSH):
    """Agent client over an already connected socket."""

    def __init__(self, conn: socket.socket) -> None:
        super().__init__()
        self._connect(conn)

    def close(self) -> None:
        self._close()


class AgentCredential(Credential):
    """Offers every key held by an ssh-agent until the server accepts one."""

    def __init__(self, agent: AgentSSH) -> None:
        self.agent = agent

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        keys = self.agent.get_keys()
        if not keys:
            raise AuthenticationException("ssh-agent holds no keys")

        last_error: Optional[AuthenticationException] = None
        for key in keys:
            try:
                logger.debug(f"Offering agent key {key.get_name()} {key.get_fingerprint().hex()}")
                transport.auth_publickey(username, key)
                return
            except AuthenticationException as e:
                last_error = e
        raise last_error

    def close(self) -> None:
        self.agent.close()


def password_auth(password: str) -> PasswordCredential:
    """Wrap a plaintext password. Nothing is validated locally."""
    return PasswordCredential(password)


def parse_private_key(private_key: Union[str, bytes]) -> paramiko.PKey:
    """Parse PEM or OpenSSH private key data into a paramiko key.

    Raises:
        InvalidKeyError: If the key is encrypted or no supported key
            type accepts the data
    """
    if isinstance(private_key, bytes):
        try:
            private_key = private_key.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidKeyError(f"Invalid private key: {e}") from e

    errors = []
    for key_class in KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(private_key))
        except paramiko.PasswordRequiredException as e:
            logger.error("Private key requires passphrase (not supported)")
            raise InvalidKeyError("Private key requires passphrase") from e
        except (SSHException, ValueError) as e:
            errors.append(f"{key_class.__name__}: {e}")

    logger.error(f"Failed to load private key: {'; '.join(errors)}")
    raise InvalidKeyError(f"Invalid private key: {'; '.join(errors)}")


def key_auth(private_key: Union[str, bytes]) -> KeyCredential:
    """Build a public key credential from in-memory key data."""
    return KeyCredential(parse_private_key(private_key))


def default_key_path(home_resolver: Callable[[], Path] = Path.home) -> Path:
    """Return ``<home>/.ssh/id_rsa`` for the invoking user."""
    try:
        home = home_resolver()
    except (RuntimeError, KeyError, OSError) as e:
        raise KeyFileError(f"Cannot determine home directory for default key: {e}") from e
    return Path(home) / DEFAULT_KEY_FILE


def key_file_auth(
    key_path: Union[str, os.PathLike] = "",
    home_resolver: Callable[[], Path] = Path.home,
) -> KeyCredential:
    """Read a private key file and build a public key credential.

    Args:
        key_path: Path to the private key; empty means ``~/.ssh/id_rsa``
        home_resolver: Returns the home directory used for the default path

    Raises:
        KeyFileNotFoundError: If the key file does not exist
        KeyFileError: If the key file cannot be read
        InvalidKeyError: If the key data cannot be parsed
    """
    path = Path(key_path).expanduser() if key_path else default_key_path(home_resolver)

    try:
        data = path.read_bytes()
    except FileNotFoundError as e:
        raise KeyFileNotFoundError(f"Private key file not found: {path}") from e
    except OSError as e:
        raise KeyFileError(f"Cannot read private key file {path}: {e}") from e

    logger.debug(f"Loaded private key file {path}")
    return key_auth(data)


def agent_auth(
    socket_path: Optional[str] = None,
    environ: Mapping[str, str] = os.environ,
    timeout: Optional[float] = AGENT_TIMEOUT,
) -> AgentCredential:
    """Connect to a running ssh-agent and wrap its keys as a credential.

    Args:
        socket_path: Agent socket; defaults to ``$SSH_AUTH_SOCK``
        environ: Environment consulted when ``socket_path`` is None
        timeout: Seconds to wait on each agent request

    Raises:
        AgentUnavailableError: If no socket is configured, it cannot be
            reached or the agent does not answer the key listing
    """
    if socket_path is None:
        socket_path = environ.get(AGENT_SOCKET_ENV, "")
    if not socket_path:
        raise AgentUnavailableError(f"{AGENT_SOCKET_ENV} is not set")

    conn = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    conn.settimeout(timeout)
    try:
        conn.connect(socket_path)
        agent = _SocketAgent(conn)
    except (OSError, SSHException) as e:
        conn.close()
        logger.error(f"Cannot reach ssh-agent at {socket_path}: {e}")
        raise AgentUnavailableError(f"Cannot reach ssh-agent at {socket_path}: {e}") from e

    logger.debug(f"ssh-agent at {socket_path} offers {len(agent.get_keys())} key(s)")
    return AgentCredential(agent)
