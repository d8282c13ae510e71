# =============================================================================
# User-Facing Notices
# =============================================================================

import subprocess
import sys

NOTICE_TITLE = "Vault Launcher"


def _applescript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def show_notice(message: str, title: str = NOTICE_TITLE) -> None:
    """
    Post a macOS notification via osascript.

    Falls back to stderr when osascript is unavailable or fails, so a notice
    is never lost silently.

    Args:
        message: Notice text (shown verbatim)
        title: Notification title
    """
    applescript = (
        f"display notification {_applescript_string(message)} "
        f"with title {_applescript_string(title)}"
    )

    try:
        result = subprocess.run(
            ["osascript", "-e", applescript],
            capture_output=True,
            timeout=5,
            check=False
        )
    except (OSError, subprocess.TimeoutExpired, subprocess.SubprocessError) as e:
        sys.stderr.write(f"{title}: {message}\n")
        sys.stderr.write(f"(osascript failed: {e})\n")
        return

    if result.returncode != 0:
        sys.stderr.write(f"{title}: {message}\n")
