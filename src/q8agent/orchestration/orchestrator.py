# src/q8agent/orchestration/orchestrator.py
"""
Tenant lifecycle orchestration.

The orchestrator turns tenant-level requests into ordered sequences of
directory operations and compose commands:

    provision : prepare -> write config -> pull -> up
    teardown  : down (failure logged, not raised) -> archive
    restart   : restart
    status / logs / images : one read-only command each

There is no persisted state; each call is a fresh sequence. Mutating
operations hold the subdomain's lock for their whole duration. Failures are
raised as OrchestrationError with a stage prefix and the root cause chained;
nothing already applied is rolled back.
"""

import asyncio
import logging
from typing import Awaitable, Optional

from ..config.models import AgentConfig
from ..engine.base import DEFAULT_LOG_TAIL, CommandResult, ComposeExecutor
from ..engine.docker_compose import DockerComposeExecutor
from ..exceptions import (
    CommandError,
    CommandFailedError,
    OrchestrationError,
    TenantDirectoryError,
    ValidationError,
)
from ..models import DatabaseUserOutcome, DatabaseUserRequest, TenantIdentity, validate_subdomain
from ..tenants.directory import TenantDirectoryManager
from ..tenants.locks import SubdomainLockRegistry
from .mongo_script import build_create_user_script, parse_outcome

logger = logging.getLogger(__name__)


class TenantOrchestrator:
    """
    Coordinates tenant operations across the directory manager and the executor.

    Attributes:
        _config: Immutable agent configuration
        _directories: Owner of tenant directories
        _executor: Container engine executor
        _locks: Per-subdomain lock registry
    """

    def __init__(
        self,
        config: AgentConfig,
        directories: TenantDirectoryManager,
        executor: ComposeExecutor,
        locks: Optional[SubdomainLockRegistry] = None,
    ):
        self._config = config
        self._directories = directories
        self._executor = executor
        self._locks = locks or SubdomainLockRegistry()

    @classmethod
    def from_config(cls, config: AgentConfig) -> "TenantOrchestrator":
        """Build the orchestrator with the production collaborators."""
        return cls(
            config=config,
            directories=TenantDirectoryManager(config.tenants_root),
            executor=DockerComposeExecutor.from_config(config),
        )

    @property
    def executor(self) -> ComposeExecutor:
        return self._executor

    def project_name(self, subdomain: str) -> str:
        return self._config.project_name(subdomain)

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    async def provision(self, identity: TenantIdentity, compose_content: str, env_content: str) -> None:
        """
        Set up (or re-apply) a tenant environment.

        Re-provisioning an existing subdomain overwrites its configuration
        and recreates its containers.

        Raises:
            OrchestrationError: With stage "fs", "config", "docker pull" or "docker up"
        """
        subdomain = identity.subdomain
        logger.info(f"Provisioning tenant: {identity.id} (subdomain: {subdomain})")

        async with self._locks.hold(subdomain):
            # Step 1: Prepare directory
            try:
                directory = await asyncio.to_thread(self._directories.prepare, subdomain)
            except TenantDirectoryError as e:
                raise OrchestrationError("fs", str(e), subdomain) from e

            # Step 2: Write configuration
            try:
                await asyncio.to_thread(
                    self._directories.write_config, subdomain, compose_content, env_content
                )
            except TenantDirectoryError as e:
                raise OrchestrationError("config", str(e), subdomain) from e

            # Step 3: Pull, then up (up pulls again)
            project = self.project_name(subdomain)

            logger.info(f"Pulling images for project: {project}")
            await self._run_step("docker pull", subdomain, self._executor.pull(project, directory))

            logger.info(f"Spinning up containers for project: {project}")
            await self._run_step("docker up", subdomain, self._executor.up(project, directory))

        logger.info(f"Tenant {identity.id} provisioned successfully")

    async def teardown(self, subdomain: str) -> Optional[str]:
        """
        Stop a tenant's containers and archive its directory.

        A failing ``down`` is only logged: the containers may already be gone,
        and archiving the tenant's data must still happen.

        Returns:
            Name of the archived directory, or None if there was no directory

        Raises:
            InvalidSubdomainError: If the subdomain is malformed
            OrchestrationError: With stage "fs archive" if the rename fails
        """
        validate_subdomain(subdomain)
        logger.info(f"Tearing down tenant: {subdomain}")

        project = self.project_name(subdomain)
        directory = self._directories.get_path(subdomain)

        async with self._locks.hold(subdomain):
            # Step 1: Docker down
            try:
                result = await self._executor.down(project, directory)
                if not result.success:
                    logger.warning(f"docker down failed (might already be gone): {result.output.strip()}")
            except CommandError as e:
                logger.warning(f"docker down failed (might already be gone): {e}")

            # Step 2: Archive files instead of removing them
            try:
                archived = await asyncio.to_thread(self._directories.archive, subdomain)
            except TenantDirectoryError as e:
                raise OrchestrationError("fs archive", str(e), subdomain) from e

            if archived is None:
                logger.info(f"Tenant {subdomain} directory not found, nothing to archive")
                return None

            kept = await asyncio.to_thread(self._directories.list_archives, subdomain)

        logger.info(f"Tenant {subdomain} archived to {archived} ({len(kept)} archive(s) kept)")
        return archived

    async def restart(self, subdomain: str) -> None:
        """
        Restart a tenant's containers in place.

        Raises:
            OrchestrationError: With stage "docker restart"; no recovery is attempted
        """
        validate_subdomain(subdomain)
        logger.info(f"Restarting tenant: {subdomain}")

        async with self._locks.hold(subdomain):
            await self._run_step(
                "docker restart",
                subdomain,
                self._executor.restart(self.project_name(subdomain), self._directories.get_path(subdomain)),
            )

    # ------------------------------------------------------------------
    # Read-only operations
    # ------------------------------------------------------------------

    async def status(self, subdomain: str) -> str:
        """Raw ``ps`` output for the tenant's containers."""
        validate_subdomain(subdomain)
        result = await self._run_step(
            "docker ps",
            subdomain,
            self._executor.ps(self.project_name(subdomain), self._directories.get_path(subdomain)),
        )
        return result.output

    async def logs(self, subdomain: str, tail: int = DEFAULT_LOG_TAIL) -> str:
        """Last ``tail`` lines of the tenant's combined logs."""
        validate_subdomain(subdomain)
        if tail < 0:
            raise ValidationError(f"tail must not be negative, got {tail}")
        result = await self._run_step(
            "docker logs",
            subdomain,
            self._executor.logs(self.project_name(subdomain), self._directories.get_path(subdomain), tail=tail),
        )
        return result.output

    async def images(self, subdomain: str) -> str:
        """Raw image metadata for the tenant's services."""
        validate_subdomain(subdomain)
        result = await self._run_step(
            "docker images",
            subdomain,
            self._executor.images(self.project_name(subdomain), self._directories.get_path(subdomain)),
        )
        return result.output

    # ------------------------------------------------------------------
    # Database users
    # ------------------------------------------------------------------

    async def create_database_user(self, request: DatabaseUserRequest) -> DatabaseUserOutcome:
        """
        Create a readWrite user on a tenant database, or reset its password if it exists.

        The administrative connection always uses the configured credentials.

        Raises:
            OrchestrationError: With stage "mongo execution" on any other script failure
        """
        mongo = self._config.mongo
        logger.info(
            f"Creating MongoDB user: {request.new_user} for database: {request.database_name} "
            f"using configured mongo host: {mongo.host}"
        )

        script = build_create_user_script(
            admin_user=mongo.user,
            admin_password=mongo.password,
            database_name=request.database_name,
            new_user=request.new_user,
            new_password=request.new_password,
        )
        result = await self._run_step(
            "mongo execution", None, self._executor.run_admin_script(mongo.address, script)
        )

        outcome = parse_outcome(result.output)
        if outcome is None:
            raise OrchestrationError("mongo execution", f"unexpected script output: {result.output.strip()}")

        logger.info(f"MongoDB user {request.new_user} on {request.database_name}: {outcome.value}")
        return outcome

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run_step(
        self, stage: str, subdomain: Optional[str], step: Awaitable[CommandResult]
    ) -> CommandResult:
        """
        Await one executor call and turn any failure into an OrchestrationError.

        The captured output of a failed command becomes the error detail.
        """
        try:
            result = await step
        except CommandError as e:
            raise OrchestrationError(stage, str(e), subdomain) from e

        if not result.success:
            failure = CommandFailedError(result.command, result.output, result.exit_code)
            raise OrchestrationError(stage, str(failure), subdomain) from failure
        return result
