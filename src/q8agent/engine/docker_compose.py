# src/q8agent/engine/docker_compose.py
"""
docker compose executor.

Compose operations are run through the ``docker compose`` CLI plugin, one
subprocess per call, with the tenant directory as working directory and
standard error folded into standard output. The one-shot administrative
script container is run through the docker-py SDK, which also serves the
daemon reachability check.

Every call has a deadline. A command that outlives it is killed and
reported as CommandTimeoutError; a cancelled caller also kills the child.

Usage:
    >>> executor = DockerComposeExecutor(default_timeout=300, read_timeout=30)
    >>> if not await executor.is_available():
    ...     raise SystemExit(1)
    >>> result = await executor.ps("q8-acme", Path("/opt/tenants/acme"))
    >>> print(result.output)

Requirements:
    - docker CLI with the compose plugin on PATH
    - docker-py package (pip install docker)
    - Docker daemon running and accessible
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, List, Optional

import docker
from docker.errors import DockerException, ImageNotFound, APIError
from requests.exceptions import RequestException

from ..config.models import AgentConfig
from ..exceptions import CommandTimeoutError, EngineUnavailableError
from .base import DEFAULT_LOG_TAIL, CommandResult, ComposeExecutor

logger = logging.getLogger(__name__)

# Exit code reported when a command could not be started in its working directory.
NOT_STARTED_EXIT_CODE = -1

# Exit code docker uses when the daemon refuses to run a container.
DOCKER_RUN_ERROR_EXIT_CODE = 125


class DockerComposeExecutor(ComposeExecutor):
    """
    Executor backed by the docker CLI and the docker-py SDK.

    Attributes:
        _docker_binary: Name or path of the docker CLI
        _default_timeout: Deadline for mutating commands and the admin script
        _read_timeout: Deadline for ps/logs/images and the availability check
        _docker_host: Optional daemon URL for the SDK client
        _admin_image: Image used for the administrative script container
        _client: Lazily created docker.DockerClient
    """

    def __init__(
        self,
        docker_binary: str = "docker",
        default_timeout: float = 300,
        read_timeout: float = 30,
        docker_host: Optional[str] = None,
        admin_image: str = "mongo:latest",
    ):
        self._docker_binary = docker_binary
        self._default_timeout = default_timeout
        self._read_timeout = read_timeout
        self._docker_host = docker_host
        self._admin_image = admin_image
        self._client: Any | None = None  # docker.DockerClient

    @classmethod
    def from_config(cls, config: AgentConfig) -> "DockerComposeExecutor":
        """Build an executor from the agent configuration."""
        return cls(
            default_timeout=config.command_timeout_seconds,
            read_timeout=config.read_timeout_seconds,
            docker_host=config.docker_host,
            admin_image=config.mongo.image,
        )

    # ------------------------------------------------------------------
    # Compose operations
    # ------------------------------------------------------------------

    async def pull(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        argv = self._compose_args(project, "pull")
        return await self._run(argv, directory, self._deadline(timeout, self._default_timeout))

    async def up(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        argv = self._compose_args(project, "up", "-d", "--pull", "always", "--force-recreate")
        return await self._run(argv, directory, self._deadline(timeout, self._default_timeout))

    async def down(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        argv = self._compose_args(project, "down", "-v", "--remove-orphans")
        return await self._run(argv, directory, self._deadline(timeout, self._default_timeout))

    async def restart(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        argv = self._compose_args(project, "restart")
        return await self._run(argv, directory, self._deadline(timeout, self._default_timeout))

    async def ps(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        argv = self._compose_args(project, "ps", "--format", "json")
        return await self._run(argv, directory, self._deadline(timeout, self._read_timeout))

    async def logs(
        self,
        project: str,
        directory: Path,
        tail: int = DEFAULT_LOG_TAIL,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        argv = self._compose_args(project, "logs", "--tail", str(tail), "--no-color")
        return await self._run(argv, directory, self._deadline(timeout, self._read_timeout))

    async def images(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        argv = self._compose_args(project, "images", "--format", "json")
        return await self._run(argv, directory, self._deadline(timeout, self._read_timeout))

    async def is_available(self) -> bool:
        """
        Check that the daemon answers and the compose plugin is installed.

        Returns:
            True only if both checks pass
        """
        try:
            client = self._get_client()
            await asyncio.wait_for(asyncio.to_thread(client.ping), timeout=self._read_timeout)
        except (EngineUnavailableError, DockerException, RequestException, asyncio.TimeoutError) as e:
            logger.error(f"Docker daemon is not reachable: {e}")
            return False

        try:
            result = await self._run([self._docker_binary, "compose", "version"], None, self._read_timeout)
        except (EngineUnavailableError, CommandTimeoutError) as e:
            logger.error(f"docker compose check failed: {e}")
            return False

        if not result.success:
            logger.error(f"docker compose is not usable: {result.output.strip()}")
            return False

        logger.info(f"Container engine available: {result.output.strip()}")
        return True

    # ------------------------------------------------------------------
    # Administrative script
    # ------------------------------------------------------------------

    async def run_admin_script(self, host: str, script: str, timeout: Optional[float] = None) -> CommandResult:
        """
        Run ``mongosh <host> --eval <script>`` in a throwaway container.

        The container uses the host network so ``host`` resolves the same way
        it does on the agent's machine. It is always removed afterwards.

        Args:
            host: Connection target passed to mongosh (host:port)
            script: Script body to evaluate
            timeout: Deadline in seconds (None = default timeout)

        Returns:
            CommandResult with the container's exit status and combined logs

        Raises:
            EngineUnavailableError: If the daemon cannot be reached
            CommandTimeoutError: If the container outlives the deadline
        """
        effective_timeout = self._deadline(timeout, self._default_timeout)
        # The script carries credentials, so it never appears in reported commands.
        reported = [
            self._docker_binary, "run", "--rm", "--network", "host",
            self._admin_image, "mongosh", host, "--eval", "<script>",
        ]
        client = self._get_client()
        start_time = time.monotonic()

        logger.debug(f"Starting admin script container ({self._admin_image}) against {host}")
        try:
            container = await asyncio.to_thread(
                lambda: client.containers.run(
                    self._admin_image,
                    command=["mongosh", host, "--eval", script],
                    network_mode="host",
                    detach=True,
                )
            )
        except (ImageNotFound, APIError) as e:
            return CommandResult(
                command=reported,
                exit_code=DOCKER_RUN_ERROR_EXIT_CODE,
                output=str(e),
                duration_seconds=time.monotonic() - start_time,
            )
        except (DockerException, RequestException) as e:
            raise EngineUnavailableError(
                f"Failed to start admin script container: {e}", command=reported
            ) from e

        try:
            try:
                status = await asyncio.wait_for(asyncio.to_thread(container.wait), timeout=effective_timeout)
            except asyncio.TimeoutError:
                await asyncio.to_thread(self._kill_container, container)
                output = await asyncio.to_thread(self._container_output, container)
                raise CommandTimeoutError(reported, effective_timeout, output=output)
            except (DockerException, RequestException) as e:
                await asyncio.to_thread(self._kill_container, container)
                raise EngineUnavailableError(
                    f"Lost contact with admin script container: {e}", command=reported
                ) from e

            output = await asyncio.to_thread(self._container_output, container)
            return CommandResult(
                command=reported,
                exit_code=int(status.get("StatusCode", NOT_STARTED_EXIT_CODE)),
                output=output,
                duration_seconds=time.monotonic() - start_time,
            )
        finally:
            await asyncio.to_thread(self._remove_container, container)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _compose_args(self, project: str, *args: str) -> List[str]:
        return [self._docker_binary, "compose", "-p", project, *args]

    @staticmethod
    def _deadline(timeout: Optional[float], default: float) -> float:
        return timeout if timeout is not None else default

    def _get_client(self) -> Any:
        """
        Connect to the Docker daemon on first use.

        Raises:
            EngineUnavailableError: If the client cannot be created
        """
        if self._client is None:
            try:
                if self._docker_host:
                    self._client = docker.DockerClient(base_url=self._docker_host)
                    logger.info(f"Connected to remote Docker: {self._docker_host}")
                else:
                    self._client = docker.from_env()
                    logger.debug("Connected to local Docker daemon")
            except (DockerException, RequestException) as e:
                raise EngineUnavailableError(f"Failed to connect to Docker daemon: {e}") from e
        return self._client

    async def _run(self, argv: List[str], cwd: Optional[Path], timeout: float) -> CommandResult:
        """
        Run a command to completion and capture its combined output.

        Args:
            argv: Command and arguments
            cwd: Working directory (None = inherit)
            timeout: Deadline in seconds

        Returns:
            CommandResult; a missing working directory is reported as a
            failed result rather than raised.

        Raises:
            EngineUnavailableError: If the docker binary cannot be executed
            CommandTimeoutError: If the deadline passes
        """
        start_time = time.monotonic()

        if cwd is not None and not Path(cwd).is_dir():
            return CommandResult(
                command=argv,
                exit_code=NOT_STARTED_EXIT_CODE,
                output=f"working directory does not exist: {cwd}",
            )

        logger.debug(f"Running: {' '.join(argv)} (cwd={cwd}, timeout={timeout}s)")
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise EngineUnavailableError(f"Failed to execute {argv[0]}: {e}", command=argv)

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill_process(process)
            logger.warning(f"Command timed out after {timeout}s: {' '.join(argv)}")
            raise CommandTimeoutError(argv, timeout)
        except asyncio.CancelledError:
            await self._kill_process(process)
            raise

        result = CommandResult(
            command=argv,
            exit_code=process.returncode if process.returncode is not None else NOT_STARTED_EXIT_CODE,
            output=(stdout or b"").decode("utf-8", errors="replace"),
            duration_seconds=time.monotonic() - start_time,
        )
        if not result.success:
            logger.debug(f"Command exited {result.exit_code}: {' '.join(argv)}")
        return result

    @staticmethod
    async def _kill_process(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()

    @staticmethod
    def _kill_container(container: Any) -> None:
        try:
            container.kill()
        except (DockerException, RequestException) as e:
            logger.warning(f"Failed to kill admin script container: {e}")

    @staticmethod
    def _container_output(container: Any) -> str:
        try:
            raw = container.logs(stdout=True, stderr=True)
        except (DockerException, RequestException) as e:
            logger.warning(f"Failed to read admin script container logs: {e}")
            return ""
        return raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)

    @staticmethod
    def _remove_container(container: Any) -> None:
        try:
            container.remove(force=True)
        except (DockerException, RequestException) as e:
            logger.warning(f"Failed to remove admin script container: {e}")
