"""Custom exceptions for simple_ssh package."""


class SSHConnectionError(Exception):
    """Base exception for SSH connection errors."""
    pass


class UsernameResolutionError(SSHConnectionError):
    """Raised when no username was given and the current user is unknown."""
    pass


class InvalidEndpointError(SSHConnectionError):
    """Raised when a host address carries an unusable port."""
    pass


class KeyFileError(SSHConnectionError):
    """Raised when the private key file cannot be read."""
    pass


class KeyFileNotFoundError(KeyFileError):
    """Raised when SSH private key file doesn't exist."""
    pass


class InvalidKeyError(SSHConnectionError):
    """Raised when private key data cannot be parsed."""
    pass


class AgentUnavailableError(SSHConnectionError):
    """Raised when the ssh-agent socket is unset or unreachable."""
    pass


class HostUnreachableError(SSHConnectionError):
    """Raised when SSH host is unreachable or connection cannot be established."""
    pass


class ConnectTimeoutError(HostUnreachableError):
    """Raised when dialing the host exceeds the connect timeout."""
    pass


class AuthenticationFailedError(SSHConnectionError):
    """Raised when SSH authentication fails."""
    pass


class HandshakeFailedError(SSHConnectionError):
    """Raised when the SSH protocol handshake fails."""
    pass


class CommandExecutionFailedError(SSHConnectionError):
    """Raised when a command channel cannot be opened or read."""
    pass


class CommandExitError(CommandExecutionFailedError):
    """Raised when a remote command exits with a non-zero status.

    The captured output is kept on the exception so callers can inspect
    what the command printed before failing. For combined execution
    ``stdout`` holds the interleaved output and ``stderr`` is empty.
    """

    def __init__(self, command: str, exit_status: int, stdout: bytes = b"", stderr: bytes = b"") -> None:
        super().__init__(f"Command {command!r} exited with status {exit_status}")
        self.command = command
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr

    @property
    def output(self) -> bytes:
        return self.stdout + self.stderr


class TransferFailedError(SSHConnectionError):
    """Raised when an SFTP open, read, write or copy fails."""
    pass
