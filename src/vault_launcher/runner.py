# =============================================================================
# Process Runner
# =============================================================================

import asyncio
import signal as signal_module
import time
from collections.abc import Mapping

from loguru import logger

from .errors import AttemptOutcome, FailureReason
from .plan import LaunchCommand

TAIL_BYTES = 8192
LAUNCH_TIMEOUT_MS = 10_000
_READ_CHUNK = 4096


class TailBuffer:
    """Fixed-size trailing window over a byte stream."""

    def __init__(self, limit: int = TAIL_BYTES):
        self.limit = limit
        self._buffer = bytearray()

    def append(self, chunk: bytes) -> None:
        if len(chunk) >= self.limit:
            self._buffer[:] = chunk[-self.limit:]
            return
        self._buffer.extend(chunk)
        overflow = len(self._buffer) - self.limit
        if overflow > 0:
            del self._buffer[:overflow]

    def __len__(self) -> int:
        return len(self._buffer)

    def __bytes__(self) -> bytes:
        return bytes(self._buffer)

    def text(self) -> str | None:
        """Decoded tail, or None when nothing was captured."""
        if not self._buffer:
            return None
        return self._buffer.decode("utf-8", errors="replace")


async def _drain(stream, tail: TailBuffer) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        tail.append(chunk)


def signal_name(signum: int) -> str:
    try:
        return signal_module.Signals(signum).name
    except ValueError:
        return str(signum)


def classify_exit(
    exit_code: int | None,
    signal: str | None,
    stdout: str | None = None,
    stderr: str | None = None,
) -> AttemptOutcome:
    """
    Classify a finished process.

    A terminating signal wins over any exit code; otherwise any non-zero
    code is a failure.
    """
    if signal is not None:
        return AttemptOutcome.failed(
            FailureReason.TERMINATED_BY_SIGNAL,
            exit_code=exit_code,
            signal=signal,
            stdout=stdout,
            stderr=stderr,
        )
    if exit_code != 0:
        return AttemptOutcome.failed(
            FailureReason.NON_ZERO_EXIT,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
        )
    return AttemptOutcome.ok(stdout=stdout, stderr=stderr)


def outcome_from_returncode(
    returncode: int | None,
    stdout: str | None = None,
    stderr: str | None = None,
) -> AttemptOutcome:
    # asyncio reports death by signal N as returncode -N
    if returncode is not None and returncode < 0:
        return classify_exit(None, signal_name(-returncode), stdout, stderr)
    return classify_exit(returncode, None, stdout, stderr)


async def run_command(
    command: LaunchCommand,
    env: Mapping[str, str],
    timeout_ms: int = LAUNCH_TIMEOUT_MS,
    spawn=None,
) -> AttemptOutcome:
    """
    Run one launch command as a child process.

    Exactly one of spawn error, process exit, or timeout settles the outcome.
    On timeout the child gets a single SIGTERM and is not waited on.

    Args:
        command: Command and argument vector (never run through a shell)
        env: Environment for the child
        timeout_ms: Time allowed before the child is terminated
        spawn: Replacement for asyncio.create_subprocess_exec

    Returns:
        AttemptOutcome with the last TAIL_BYTES of stdout and stderr
    """
    spawn = spawn or asyncio.create_subprocess_exec
    stdout_tail = TailBuffer()
    stderr_tail = TailBuffer()
    start_time = time.perf_counter()

    logger.debug(
        "Spawning launch command",
        operation="run_command",
        status="started",
        command=command.command,
        args=list(command.args),
        timeout_ms=timeout_ms
    )

    try:
        process = await spawn(
            command.command,
            *command.args,
            env=dict(env),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (OSError, ValueError) as e:
        return AttemptOutcome.failed(FailureReason.PROCESS_ERROR, error=e)

    loop = asyncio.get_running_loop()
    settled: asyncio.Future[AttemptOutcome] = loop.create_future()

    def settle(outcome: AttemptOutcome) -> None:
        if not settled.done():
            settled.set_result(outcome)

    def on_timeout() -> None:
        if settled.done():
            return
        try:
            process.terminate()
        except ProcessLookupError:
            # Exited after the timer fired but before its exit was observed
            pass
        settle(AttemptOutcome.failed(
            FailureReason.TIMED_OUT,
            stdout=stdout_tail.text(),
            stderr=stderr_tail.text(),
        ))

    async def watch_exit() -> None:
        try:
            _, _, returncode = await asyncio.gather(
                _drain(process.stdout, stdout_tail),
                _drain(process.stderr, stderr_tail),
                process.wait(),
            )
        except OSError as e:
            settle(AttemptOutcome.failed(
                FailureReason.PROCESS_ERROR,
                stdout=stdout_tail.text(),
                stderr=stderr_tail.text(),
                error=e,
            ))
            return
        settle(outcome_from_returncode(returncode, stdout_tail.text(), stderr_tail.text()))

    def on_watcher_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and not settled.done():
            settled.set_exception(exc)

    timer = loop.call_later(timeout_ms / 1000, on_timeout)
    watcher = asyncio.ensure_future(watch_exit())
    watcher.add_done_callback(on_watcher_done)

    try:
        outcome = await settled
    finally:
        timer.cancel()
        if not watcher.done():
            watcher.cancel()

    logger.debug(
        "Launch command settled",
        operation="run_command",
        status="success" if outcome.is_ok() else "failed",
        command=command.command,
        reason=outcome.reason.value if outcome.reason else None,
        metrics={"duration_ms": int((time.perf_counter() - start_time) * 1000)}
    )
    return outcome
