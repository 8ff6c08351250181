# tests/conftest.py
"""
Shared pytest fixtures for the q8 agent tests.

FakeExecutor records every call and returns scripted results, so the
orchestrator can be exercised against a real temporary tenants root
without Docker.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from q8agent.config import AgentConfig
from q8agent.engine.base import DEFAULT_LOG_TAIL, CommandResult, ComposeExecutor
from q8agent.orchestration import TenantOrchestrator
from q8agent.tenants.directory import TenantDirectoryManager


class FakeExecutor(ComposeExecutor):
    """
    In-memory executor.

    Attributes:
        calls: (operation, project, directory) tuples in call order
        results: operation -> CommandResult or exception to return/raise
        snapshots: operation -> whether the project directory existed at call time
    """

    def __init__(self):
        self.calls: List[Tuple[str, Optional[str], Optional[Path]]] = []
        self.results: Dict[str, object] = {}
        self.snapshots: Dict[str, bool] = {}
        self.tails: List[int] = []
        self.scripts: List[Tuple[str, str]] = []
        self.available = True

    async def _record(self, operation: str, project: Optional[str], directory: Optional[Path]) -> CommandResult:
        self.calls.append((operation, project, directory))
        if directory is not None:
            self.snapshots[operation] = directory.is_dir()
        outcome = self.results.get(operation)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            return CommandResult(command=["docker", "compose", operation], exit_code=0, output=f"{operation} ok")
        return outcome

    async def pull(self, project, directory, timeout=None):
        return await self._record("pull", project, directory)

    async def up(self, project, directory, timeout=None):
        return await self._record("up", project, directory)

    async def down(self, project, directory, timeout=None):
        return await self._record("down", project, directory)

    async def restart(self, project, directory, timeout=None):
        return await self._record("restart", project, directory)

    async def ps(self, project, directory, timeout=None):
        return await self._record("ps", project, directory)

    async def logs(self, project, directory, tail=DEFAULT_LOG_TAIL, timeout=None):
        self.tails.append(tail)
        return await self._record("logs", project, directory)

    async def images(self, project, directory, timeout=None):
        return await self._record("images", project, directory)

    async def is_available(self):
        return self.available

    async def run_admin_script(self, host, script, timeout=None):
        self.scripts.append((host, script))
        return await self._record("admin_script", None, None)

    @property
    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]

    @staticmethod
    def failed(output: str, exit_code: int = 1) -> CommandResult:
        return CommandResult(command=["docker", "compose"], exit_code=exit_code, output=output)


@pytest.fixture
def agent_config(tmp_path):
    return AgentConfig(
        admin_token="test-token",
        tenants_root=tmp_path / "tenants",
        check_engine_on_startup=False,
        mongo={"host": "mongo.internal", "port": 27017, "user": "root", "password": "rootpw"},
    )


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def directories(agent_config):
    return TenantDirectoryManager(agent_config.tenants_root)


@pytest.fixture
def orchestrator(agent_config, directories, fake_executor):
    return TenantOrchestrator(config=agent_config, directories=directories, executor=fake_executor)
