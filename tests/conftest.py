"""Shared pytest fixtures."""

import asyncio

import pytest
from loguru import logger

from vault_launcher.plan import LaunchCommand


class FakeProcess:
    """Stands in for asyncio.subprocess.Process."""

    def __init__(
        self,
        returncode: int = 0,
        stdout: bytes = b"",
        stderr: bytes = b"",
        hang: bool = False,
    ):
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        for stream, data in ((self.stdout, stdout), (self.stderr, stderr)):
            if data:
                stream.feed_data(data)
            stream.feed_eof()
        self.returncode = None
        self.terminate_calls = 0
        self._final_returncode = returncode
        self._hang = hang

    async def wait(self) -> int:
        if self._hang:
            # Ignores SIGTERM like a child stuck on a prompt
            await asyncio.Event().wait()
        self.returncode = self._final_returncode
        return self.returncode

    def terminate(self) -> None:
        self.terminate_calls += 1


class FakeSpawner:
    """
    Callable with the asyncio.create_subprocess_exec signature.

    Each call consumes the next outcome: a dict of FakeProcess kwargs or an
    exception to raise. Calls past the end succeed with exit code 0.
    """

    def __init__(self, outcomes=()):
        self.outcomes = list(outcomes)
        self.calls: list[LaunchCommand] = []
        self.envs: list[dict] = []
        self.processes: list[FakeProcess] = []

    async def __call__(self, program, *args, env=None, **kwargs):
        index = len(self.calls)
        self.calls.append(LaunchCommand(program, tuple(args)))
        self.envs.append(env)
        outcome = self.outcomes[index] if index < len(self.outcomes) else {}
        if isinstance(outcome, BaseException):
            raise outcome
        process = FakeProcess(**outcome)
        self.processes.append(process)
        return process

    @property
    def terminate_calls(self) -> int:
        return sum(process.terminate_calls for process in self.processes)


@pytest.fixture
def make_spawner():
    return FakeSpawner


@pytest.fixture
def log_records():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def vault_path() -> str:
    return "/Users/test/Vault With Space"


@pytest.fixture
def active_file_path(vault_path) -> str:
    return f"{vault_path}/Notes/Note.md"
