"""Session handle: command execution and SFTP transfers over one transport."""

import logging
import shutil
import time
from typing import List, Optional, Tuple

import paramiko
from paramiko.ssh_exception import SSHException

from .exceptions import (
    CommandExecutionFailedError,
    CommandExitError,
    SSHConnectionError,
    TransferFailedError,
)

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 32768
POLL_INTERVAL = 0.01


class Client:
    """A connected SSH session.

    The client owns its ``paramiko.Transport``. Every operation opens its
    own channel or SFTP client and closes it before returning, so a
    single client can be shared by threads issuing independent calls.
    """

    def __init__(
        self,
        transport: paramiko.Transport,
        username: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> None:
        self._transport: Optional[paramiko.Transport] = transport
        self.username = username
        self.endpoint = endpoint

    @property
    def transport(self) -> Optional[paramiko.Transport]:
        return self._transport

    def is_connected(self) -> bool:
        """Check if the SSH transport is present and active."""
        return self._transport is not None and self._transport.is_active()

    def _require_transport(self) -> paramiko.Transport:
        if not self.is_connected():
            raise SSHConnectionError("Not connected to remote host")
        return self._transport

    def _run(self, command: str, combine: bool) -> Tuple[bytes, bytes, int]:
        """Run ``command`` on a fresh session channel and collect its output.

        Returns:
            (stdout, stderr, exit_status); stderr is empty when ``combine``
        """
        transport = self._require_transport()
        try:
            chan = transport.open_session()
        except (SSHException, EOFError, OSError) as e:
            logger.error(f"Cannot open session channel: {e}")
            raise CommandExecutionFailedError(f"Cannot open session channel: {e}") from e

        stdout: List[bytes] = []
        stderr: List[bytes] = []
        try:
            logger.debug(f"Executing command: {command}")
            if combine:
                chan.set_combine_stderr(True)
            chan.exec_command(command)

            while True:
                idle = True
                if chan.recv_ready():
                    data = chan.recv(READ_CHUNK_SIZE)
                    if data:
                        stdout.append(data)
                        idle = False

                if chan.recv_stderr_ready():
                    data = chan.recv_stderr(READ_CHUNK_SIZE)
                    if data:
                        stderr.append(data)
                        idle = False

                # The exit status may arrive before the last data; only EOF ends the output.
                if chan.eof_received or chan.closed:
                    if not chan.recv_ready() and not chan.recv_stderr_ready():
                        break

                if idle:
                    time.sleep(POLL_INTERVAL)

            exit_status = chan.recv_exit_status()
        except (SSHException, EOFError, OSError) as e:
            logger.error(f"Command execution failed: {e}")
            raise CommandExecutionFailedError(f"Command execution failed: {e}") from e
        finally:
            chan.close()

        logger.debug(f"Command exit code: {exit_status}")
        return b"".join(stdout), b"".join(stderr), exit_status

    def exec(self, command: str) -> bytes:
        """Execute ``command`` and return stdout and stderr combined.

        Raises:
            CommandExitError: If the command exits non-zero; the combined
                output is available on the exception
            CommandExecutionFailedError: If the channel fails
        """
        output, _, exit_status = self._run(command, combine=True)
        if exit_status != 0:
            raise CommandExitError(command, exit_status, stdout=output)
        return output

    def exec_with_output_streams(self, command: str) -> Tuple[bytes, bytes]:
        """Execute ``command`` and return stdout and stderr separately.

        Raises:
            CommandExitError: If the command exits non-zero; both buffers
                are available on the exception
            CommandExecutionFailedError: If the channel fails
        """
        stdout, stderr, exit_status = self._run(command, combine=False)
        if exit_status != 0:
            raise CommandExitError(command, exit_status, stdout=stdout, stderr=stderr)
        return stdout, stderr

    def sftp_client(self) -> paramiko.SFTPClient:
        """Open an SFTP client on this session.

        The caller owns the returned client and must close it.
        """
        transport = self._require_transport()
        try:
            sftp = paramiko.SFTPClient.from_transport(transport)
        except (SSHException, EOFError, OSError) as e:
            logger.error(f"Failed to open SFTP session: {e}")
            raise TransferFailedError(f"Failed to open SFTP session: {e}") from e
        if sftp is None:
            raise TransferFailedError("Failed to open SFTP session")
        return sftp

    def download(self, remote: str, local: str) -> None:
        """Copy ``remote`` to ``local``, truncating any existing local file.

        A failed copy leaves the partially written local file in place.
        """
        with self.sftp_client() as sftp:
            try:
                with sftp.open(remote, "rb") as remote_file, open(local, "wb") as local_file:
                    remote_file.prefetch()
                    shutil.copyfileobj(remote_file, local_file)
            except (OSError, EOFError, SSHException) as e:
                logger.error(f"Download {remote} -> {local} failed: {e}")
                raise TransferFailedError(f"Download {remote} -> {local} failed: {e}") from e
        logger.debug(f"Downloaded {remote} -> {local}")

    def upload(self, local: str, remote: str) -> None:
        """Copy ``local`` to ``remote``, creating or truncating the remote file."""
        with self.sftp_client() as sftp:
            try:
                with open(local, "rb") as local_file, sftp.open(remote, "wb") as remote_file:
                    remote_file.set_pipelined(True)
                    shutil.copyfileobj(local_file, remote_file)
            except (OSError, EOFError, SSHException) as e:
                logger.error(f"Upload {local} -> {remote} failed: {e}")
                raise TransferFailedError(f"Upload {local} -> {remote} failed: {e}") from e
        logger.debug(f"Uploaded {local} -> {remote}")

    def read_all(self, remote: str) -> bytes:
        """Read a remote file and return its contents."""
        with self.sftp_client() as sftp:
            try:
                with sftp.open(remote, "rb") as remote_file:
                    return remote_file.read()
            except (OSError, EOFError, SSHException) as e:
                logger.error(f"Reading {remote} failed: {e}")
                raise TransferFailedError(f"Reading {remote} failed: {e}") from e

    def close(self) -> None:
        """Close the underlying SSH connection."""
        if self._transport is not None:
            logger.info("Disconnecting SSH connection")
            self._transport.close()
            self._transport = None

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        status = "connected" if self.is_connected() else "disconnected"
        return f"Client({self.username}@{self.endpoint}, {status})"
