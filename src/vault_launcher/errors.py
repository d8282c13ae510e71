# =============================================================================
# Error Handling Types (AttemptOutcome)
# =============================================================================

import errno
from dataclasses import dataclass
from enum import Enum


class FailureReason(Enum):
    PROCESS_ERROR = "process_error"
    NON_ZERO_EXIT = "non_zero_exit"
    TERMINATED_BY_SIGNAL = "terminated_by_signal"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of running one launch command."""

    success: bool
    reason: FailureReason | None = None
    exit_code: int | None = None
    signal: str | None = None
    stdout: str | None = None
    stderr: str | None = None
    error: BaseException | None = None

    @staticmethod
    def ok(stdout: str | None = None, stderr: str | None = None) -> 'AttemptOutcome':
        return AttemptOutcome(success=True, exit_code=0, stdout=stdout, stderr=stderr)

    @staticmethod
    def failed(
        reason: FailureReason,
        *,
        exit_code: int | None = None,
        signal: str | None = None,
        stdout: str | None = None,
        stderr: str | None = None,
        error: BaseException | None = None,
    ) -> 'AttemptOutcome':
        return AttemptOutcome(
            success=False,
            reason=reason,
            exit_code=exit_code,
            signal=signal,
            stdout=stdout,
            stderr=stderr,
            error=error,
        )

    def is_ok(self) -> bool:
        return self.success

    def is_err(self) -> bool:
        return not self.success

    @property
    def is_missing_binary(self) -> bool:
        """True when the OS reported the executable as not found."""
        return (
            self.reason is FailureReason.PROCESS_ERROR
            and isinstance(self.error, OSError)
            and self.error.errno == errno.ENOENT
        )


def describe_failure(outcome: AttemptOutcome) -> str:
    """Human-readable classification used as the log message."""
    if outcome.reason is FailureReason.TIMED_OUT:
        return "Launch timed out"
    if outcome.is_missing_binary:
        return "CLI missing from PATH"
    return "Launch failed"
