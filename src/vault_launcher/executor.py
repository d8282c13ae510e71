# =============================================================================
# Launch Plan Executor
# =============================================================================

import time
from collections.abc import Callable, Iterable, Mapping
from uuid import uuid4

from loguru import logger

from .editors import Editor, label_of
from .errors import AttemptOutcome, FailureReason, describe_failure
from .logging_config import trace_id_var
from .plan import LaunchCommand, LaunchPlan
from .runner import LAUNCH_TIMEOUT_MS, run_command
from .spawn_env import build_spawn_env


def failure_message(editor: Editor) -> str:
    return f"Failed to open in {label_of(editor)}. Check console for details."


def log_failure(command: LaunchCommand, outcome: AttemptOutcome, attempt: int) -> None:
    """Log a failed attempt with everything needed to diagnose it without rerunning."""
    error = outcome.error
    logger.error(
        describe_failure(outcome),
        operation="execute_plan",
        status="failed",
        attempt=attempt,
        command=command.command,
        args=list(command.args),
        reason=outcome.reason.value if outcome.reason else None,
        code=outcome.exit_code,
        signal=outcome.signal,
        stdout=outcome.stdout,
        stderr=outcome.stderr,
        error=str(error) if error else None,
        error_type=type(error).__name__ if error else None,
        errno=getattr(error, "errno", None),
    )


def _notify(plan: LaunchPlan, on_failure_notice: Callable[[str], None] | None) -> None:
    if on_failure_notice is None:
        return
    try:
        on_failure_notice(failure_message(plan.editor))
    except Exception as e:
        logger.opt(exception=e).error(
            "Failure notice callback raised",
            operation="execute_plan",
            status="notice_failed",
            editor=plan.editor.value
        )


async def execute_plan(
    plan: LaunchPlan,
    *,
    timeout_ms: int | None = None,
    on_failure_notice: Callable[[str], None] | None = None,
    spawn=None,
    environ: Mapping[str, str] | None = None,
    extra_paths: Iterable[str] = (),
) -> bool:
    """
    Run a launch plan's attempts in order until one succeeds.

    A timed-out attempt ends the plan, since the command is likely hung on a
    prompt and another launch could leave a second hung process. Any other
    failure moves on to the next attempt. The failure notice fires at most
    once per execution. Never raises.

    Args:
        plan: Plan from build_launch_plan()
        timeout_ms: Per-attempt timeout (default LAUNCH_TIMEOUT_MS)
        on_failure_notice: Receives the user-facing failure message
        spawn: Replacement for asyncio.create_subprocess_exec
        environ: Source environment for the spawn environment
        extra_paths: Additional PATH directories

    Returns:
        True if an attempt succeeded, False otherwise
    """
    timeout_ms = LAUNCH_TIMEOUT_MS if timeout_ms is None else timeout_ms
    token = trace_id_var.set(str(uuid4()))
    start_time = time.perf_counter()

    try:
        env = build_spawn_env(environ, extra_paths)

        logger.info(
            "Executing launch plan",
            operation="execute_plan",
            status="started",
            editor=plan.editor.value,
            metrics={"attempts": len(plan.attempts)}
        )

        for attempt, command in enumerate(plan.attempts, start=1):
            try:
                outcome = await run_command(command, env, timeout_ms, spawn)
            except Exception as e:
                logger.opt(exception=e).error(
                    "Launch attempt raised unexpectedly",
                    operation="execute_plan",
                    status="failed",
                    attempt=attempt,
                    command=command.command,
                    args=list(command.args)
                )
                continue

            if outcome.is_ok():
                logger.info(
                    "Launch succeeded",
                    operation="execute_plan",
                    status="success",
                    editor=plan.editor.value,
                    attempt=attempt,
                    command=command.command,
                    metrics={"duration_ms": int((time.perf_counter() - start_time) * 1000)}
                )
                return True

            log_failure(command, outcome, attempt)

            if outcome.reason is FailureReason.TIMED_OUT:
                logger.warning(
                    "Launch plan stopped after timeout",
                    operation="execute_plan",
                    status="timed_out",
                    editor=plan.editor.value,
                    attempt=attempt,
                    metrics={
                        "attempts_skipped": len(plan.attempts) - attempt,
                        "duration_ms": int((time.perf_counter() - start_time) * 1000),
                    }
                )
                _notify(plan, on_failure_notice)
                return False

        logger.warning(
            "All launch attempts failed",
            operation="execute_plan",
            status="exhausted",
            editor=plan.editor.value,
            metrics={"duration_ms": int((time.perf_counter() - start_time) * 1000)}
        )
        _notify(plan, on_failure_notice)
        return False
    finally:
        trace_id_var.reset(token)
