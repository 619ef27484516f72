"""Shared pytest fixtures for simple_ssh tests."""

import io
import os
import tempfile

import paramiko
import pytest
from unittest.mock import Mock, patch

from fake_agent import FakeAgent
from fake_sshd import SSHTestServer
from simple_ssh.client import Client


@pytest.fixture(scope="session")
def host_key():
    return paramiko.RSAKey.generate(2048)


@pytest.fixture(scope="session")
def client_key():
    return paramiko.RSAKey.generate(2048)


@pytest.fixture(scope="session")
def agent_key():
    return paramiko.ECDSAKey.generate()


@pytest.fixture(scope="session")
def client_key_pem(client_key):
    buf = io.StringIO()
    client_key.write_private_key(buf)
    return buf.getvalue()


@pytest.fixture(scope="session")
def temp_key_file(client_key_pem):
    """Write the client key to a temporary file for entire test session."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.pem', delete=False) as f:
        f.write(client_key_pem)
        temp_path = f.name

    yield temp_path

    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def sftp_root(tmp_path):
    root = tmp_path / "remote"
    root.mkdir()
    return root


@pytest.fixture
def ssh_server(sftp_root, host_key, client_key, agent_key):
    """Start an in-process SSH server accepting tester/x and the test keys."""
    server = SSHTestServer(
        root=str(sftp_root),
        host_key=host_key,
        authorized_keys=[client_key, agent_key],
    )
    yield server
    server.close()


@pytest.fixture
def ssh_agent(agent_key):
    # Unix socket paths are length-limited, so avoid the deep pytest tmp_path.
    with tempfile.TemporaryDirectory(prefix="agent") as tmp:
        agent = FakeAgent(os.path.join(tmp, "agent.sock"), [agent_key])
        yield agent
        agent.close()


@pytest.fixture
def mock_dial_setup():
    """Patch the socket dial and paramiko transport used by the connector."""
    with patch('simple_ssh.connector.socket.create_connection') as mock_create_connection, \
         patch('simple_ssh.connector.paramiko.Transport') as mock_transport_cls:

        mock_sock = Mock()
        mock_transport = Mock()

        mock_create_connection.return_value = mock_sock
        mock_transport_cls.return_value = mock_transport
        mock_transport.is_authenticated.return_value = True
        mock_transport.is_active.return_value = True

        yield {
            'create_connection': mock_create_connection,
            'transport_cls': mock_transport_cls,
            'transport': mock_transport,
            'sock': mock_sock
        }


@pytest.fixture
def mock_channel_setup():
    """Create a Client over a mock transport with a default channel."""
    mock_transport = Mock()
    mock_channel = Mock()

    mock_transport.is_active.return_value = True
    mock_transport.open_session.return_value = mock_channel

    mock_channel.recv_ready.return_value = False
    mock_channel.recv_stderr_ready.return_value = False
    mock_channel.exit_status_ready.return_value = True
    mock_channel.eof_received = True
    mock_channel.closed = False
    mock_channel.recv_exit_status.return_value = 0

    yield {
        'client': Client(mock_transport, username="tester", endpoint="test-host:22"),
        'transport': mock_transport,
        'channel': mock_channel
    }
