# =============================================================================
# PATH Augmentation for Spawned Editors
# =============================================================================
# GUI hosts on macOS start with a minimal PATH (/usr/bin:/bin:/usr/sbin:/sbin)
# that misses Homebrew and editor-installed CLI shims. Every plan execution
# gets its own copy of the environment with these directories prepended.

import os
from collections.abc import Iterable, Mapping

_ADDITIONAL_PATHS = (
    "/opt/homebrew/bin",      # Homebrew on Apple Silicon
    "/usr/local/bin",         # Homebrew on Intel / user binaries
)

# Relative to $HOME
_HOME_PATHS = (
    ".antigravity/antigravity/bin",  # Antigravity `agy` shim
)


def extra_search_paths(home: str | None, extra_paths: Iterable[str] = ()) -> list[str]:
    """
    Directories prepended to PATH, in priority order.

    Args:
        home: Home directory, or None when HOME is unset
        extra_paths: User-configured directories, placed after the built-ins
    """
    paths = []
    if home:
        paths.extend(f"{home.rstrip('/')}/{relative}" for relative in _HOME_PATHS)
    paths.extend(_ADDITIONAL_PATHS)
    paths.extend(extra_paths)
    return paths


def merge_search_path(prepend: Iterable[str], existing: str) -> str:
    """Prepend directories to a PATH string, dropping empties and duplicates (first wins)."""
    existing_parts = existing.split(os.pathsep) if existing else []
    ordered = dict.fromkeys(part for part in (*prepend, *existing_parts) if part)
    return os.pathsep.join(ordered)


def build_spawn_env(
    environ: Mapping[str, str] | None = None,
    extra_paths: Iterable[str] = (),
) -> dict[str, str]:
    """
    Copy the environment with editor binary directories prepended to PATH.

    The ambient environment is never modified.

    Args:
        environ: Source environment (defaults to os.environ)
        extra_paths: Additional directories from user settings

    Returns:
        New environment dict for child processes
    """
    env = dict(os.environ if environ is None else environ)
    prepend = extra_search_paths(env.get("HOME"), extra_paths)
    env["PATH"] = merge_search_path(prepend, env.get("PATH", ""))
    return env
