# =============================================================================
# Structured Logging Setup (JSONL format)
# =============================================================================

import json
import sys
import traceback
from contextvars import ContextVar
from datetime import timezone
from pathlib import Path

import platformdirs
from loguru import logger

COMPONENT = "vault-launcher"

# Correlation ID for one plan execution
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

_RESERVED_EXTRA = ("operation", "status", "trace_id", "metrics")


def build_log_entry(record) -> dict:
    """Convert a loguru record into the JSONL schema written to stderr."""
    log_entry = {
        "timestamp": record["time"].astimezone(timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%S.%f"
        )[:-3] + "Z",
        "level": record["level"].name.lower(),
        "component": record["function"],
        "operation": record["extra"].get("operation", "unknown"),
        "operation_status": record["extra"].get("status"),
        "trace_id": record["extra"].get("trace_id") or trace_id_var.get(),
        "message": record["message"],
        "context": {k: v for k, v in record["extra"].items()
                    if k not in _RESERVED_EXTRA},
        "metrics": record["extra"].get("metrics", {}),
        "error": None,
    }

    if record["exception"]:
        exc_type, exc_value, exc_tb = record["exception"]
        tb_lines = traceback.format_tb(exc_tb) if exc_tb else []

        log_entry["error"] = {
            "type": exc_type.__name__ if exc_type else "Unknown",
            "message": str(exc_value) if exc_value else "Unknown error",
            "traceback_lines": tb_lines,
        }

    return log_entry


def json_sink(message) -> None:
    """JSONL sink - writes one JSON object per line to stderr."""
    try:
        sys.stderr.write(json.dumps(build_log_entry(message.record), default=str) + "\n")
        sys.stderr.flush()
    except (OSError, TypeError, ValueError) as e:
        try:
            sys.stderr.write(f"[LOG_ERROR] Failed to write log: {e}\n")
        except OSError:
            pass


def setup_logger(level: str = "INFO", log_to_file: bool = True):
    """
    Configure Loguru for machine-readable JSONL output.

    Outputs:
    - stderr: JSONL via json_sink
    - File: serialized records with rotation in the OS log directory
      (macOS: ~/Library/Logs/vault-launcher/)

    Args:
        level: Minimum level for the stderr sink
        log_to_file: Also write the rotating file sink (DEBUG level)
    """
    logger.remove()

    logger.add(json_sink, level=level)

    if log_to_file:
        log_dir = Path(platformdirs.user_log_dir(
            appname=COMPONENT,
            ensure_exists=True
        ))

        logger.add(
            str(log_dir / "launcher.jsonl"),
            format="{message}",
            serialize=True,
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            level="DEBUG"
        )

    return logger
