"""
Remote shell over SSH.

Runs commands on the store host through one paramiko connection that is
opened when the run connects and reused for every command.
"""

import logging
import socket
from typing import Callable, Optional

import paramiko

from .base import BackendError

logger = logging.getLogger(__name__)


class RemoteCommandError(BackendError):
    """A remote command exited with a non-zero status."""

    def __init__(self, command: str, exit_status: int, stderr: str):
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        super().__init__(f"Command failed (code {exit_status}): {stderr.strip()[:300]}")


class RemoteShell:
    """
    Password-authenticated SSH command runner.

    Usage:
        with RemoteShell("host", 22, "user", "secret") as shell:
            output = shell.run("uptime")
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        command_timeout: int = 300,
        connect_timeout: int = 30,
        client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.command_timeout = command_timeout
        self.connect_timeout = connect_timeout
        self._client_factory = client_factory
        self._client: Optional[paramiko.SSHClient] = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *args):
        self.close()

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        """
        Open the SSH connection (no-op when already open).

        Raises:
            BackendError: If the host cannot be reached or rejects the login
        """
        if self._client is not None:
            return

        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                timeout=self.connect_timeout,
                allow_agent=False,
                look_for_keys=False,
            )
        except (paramiko.SSHException, socket.error) as e:
            client.close()
            raise BackendError(f"SSH connection to {self.host}:{self.port} failed: {e}") from e

        self._client = client
        logger.info("Connected to %s@%s:%d", self.username, self.host, self.port)

    def run(self, command: str) -> str:
        """
        Run a command and return its stdout.

        Raises:
            RemoteCommandError: If the command exits non-zero
            BackendError: If the channel fails
        """
        self.connect()
        try:
            _, stdout, stderr = self._client.exec_command(command, timeout=self.command_timeout)
            output = stdout.read().decode("utf-8", errors="replace")
            error_output = stderr.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, socket.error) as e:
            raise BackendError(f"SSH command failed: {e}") from e

        if exit_status != 0:
            raise RemoteCommandError(command, exit_status, error_output or output)
        return output

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
