"""Simple SSH package: authenticated sessions, commands and SFTP transfers."""

from .auth import (
    AgentCredential,
    Credential,
    KeyCredential,
    PasswordCredential,
    agent_auth,
    key_auth,
    key_file_auth,
    password_auth,
)
from .client import Client
from .connector import (
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    Endpoint,
    connect,
    connect_with_key,
    connect_with_key_file,
    connect_with_password,
    connect_with_ssh_agent,
    normalize_endpoint,
)
from .exceptions import (
    SSHConnectionError,
    UsernameResolutionError,
    InvalidEndpointError,
    KeyFileError,
    KeyFileNotFoundError,
    InvalidKeyError,
    AgentUnavailableError,
    HostUnreachableError,
    ConnectTimeoutError,
    AuthenticationFailedError,
    HandshakeFailedError,
    CommandExecutionFailedError,
    CommandExitError,
    TransferFailedError
)

__all__ = [
    "Client",
    "Credential",
    "PasswordCredential",
    "KeyCredential",
    "AgentCredential",
    "password_auth",
    "key_auth",
    "key_file_auth",
    "agent_auth",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "Endpoint",
    "normalize_endpoint",
    "connect",
    "connect_with_password",
    "connect_with_key",
    "connect_with_key_file",
    "connect_with_ssh_agent",
    "SSHConnectionError",
    "UsernameResolutionError",
    "InvalidEndpointError",
    "KeyFileError",
    "KeyFileNotFoundError",
    "InvalidKeyError",
    "AgentUnavailableError",
    "HostUnreachableError",
    "ConnectTimeoutError",
    "AuthenticationFailedError",
    "HandshakeFailedError",
    "CommandExecutionFailedError",
    "CommandExitError",
    "TransferFailedError"
]
__version__ = "0.1.0"
