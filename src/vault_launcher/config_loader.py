# =============================================================================
# Configuration Loading
# =============================================================================

import json
import os
import re
import tempfile
import time
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .editors import Editor
from .runner import LAUNCH_TIMEOUT_MS

CONFIG_DIR = Path("~/.config/vault-launcher").expanduser()
SETTINGS_PATH = CONFIG_DIR / "settings.toml"
ENV_CONFIG_PATH = "VAULT_LAUNCHER_CONFIG"


def _default_enabled_editors() -> dict[Editor, bool]:
    return {editor: False for editor in Editor}


@dataclass
class LauncherSettings:
    editor_type: Editor = Editor.VSCODE
    open_current_file: bool = False
    enabled_editors: dict[Editor, bool] = field(default_factory=_default_enabled_editors)
    timeout_ms: int = LAUNCH_TIMEOUT_MS
    extra_paths: list[str] = field(default_factory=list)


def settings_path() -> Path:
    """Settings file location, honouring VAULT_LAUNCHER_CONFIG."""
    override = os.environ.get(ENV_CONFIG_PATH)
    return Path(override).expanduser() if override else SETTINGS_PATH


def toml_error_line(error: tomllib.TOMLDecodeError, path: Path) -> tuple[int | None, str | None]:
    """Line number and text of a settings parse error, when tomllib reports one."""
    # TOMLDecodeError.lineno exists from 3.14; older versions only embed it in the message
    lineno = getattr(error, "lineno", None)
    if lineno is None:
        match = re.search(r"at line (\d+)", str(error))
        lineno = int(match.group(1)) if match else None
    if not lineno:
        return None, None

    try:
        lines = path.read_text().splitlines()
    except OSError:
        return lineno, None
    return lineno, lines[lineno - 1].rstrip() if lineno <= len(lines) else None


def _warn_invalid(key: str, value, path: Path) -> None:
    logger.warning(
        "Invalid setting - using default",
        operation="load_settings",
        status="fallback",
        file=str(path),
        key=key,
        value=repr(value)
    )


def parse_settings(data: dict, path: Path = SETTINGS_PATH) -> LauncherSettings:
    """
    Validate raw TOML data field by field.

    An invalid field falls back to its default without discarding the
    others.
    """
    settings = LauncherSettings()

    if "editor_type" in data:
        try:
            settings.editor_type = Editor(data["editor_type"])
        except ValueError:
            _warn_invalid("editor_type", data["editor_type"], path)

    if "open_current_file" in data:
        if isinstance(data["open_current_file"], bool):
            settings.open_current_file = data["open_current_file"]
        else:
            _warn_invalid("open_current_file", data["open_current_file"], path)

    enabled = data.get("enabled_editors")
    if isinstance(enabled, dict):
        for editor in Editor:
            value = enabled.get(editor.value)
            if isinstance(value, bool):
                settings.enabled_editors[editor] = value
            elif value is not None:
                _warn_invalid(f"enabled_editors.{editor.value}", value, path)
    elif enabled is not None:
        _warn_invalid("enabled_editors", enabled, path)

    if "timeout_ms" in data:
        timeout_ms = data["timeout_ms"]
        if isinstance(timeout_ms, int) and not isinstance(timeout_ms, bool) and timeout_ms > 0:
            settings.timeout_ms = timeout_ms
        else:
            _warn_invalid("timeout_ms", timeout_ms, path)

    extra_paths = data.get("extra_paths")
    if isinstance(extra_paths, list) and all(isinstance(p, str) for p in extra_paths):
        settings.extra_paths = list(extra_paths)
    elif extra_paths is not None:
        _warn_invalid("extra_paths", extra_paths, path)

    return settings


def load_settings(path: Path | None = None) -> LauncherSettings:
    """
    Load launcher settings from TOML, falling back to defaults.

    Args:
        path: Settings file (default: settings_path())

    Returns:
        LauncherSettings, never raises for missing or malformed files
    """
    path = path or settings_path()
    start_time = time.perf_counter()

    if not path.exists():
        logger.debug(
            "Settings file does not exist, using defaults",
            operation="load_settings",
            status="default",
            file=str(path)
        )
        return LauncherSettings()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        line_number, line_content = toml_error_line(e, path)
        logger.error(
            "Invalid TOML syntax in settings file",
            operation="load_settings",
            status="failed",
            file=str(path),
            line_number=line_number,
            line_content=line_content,
            error=str(e)
        )
        return LauncherSettings()
    except OSError as e:
        logger.warning(
            "Failed to read settings, using defaults",
            operation="load_settings",
            status="fallback",
            file=str(path),
            error=str(e),
            error_type=type(e).__name__
        )
        return LauncherSettings()

    settings = parse_settings(data, path)
    logger.debug(
        "Settings loaded successfully",
        operation="load_settings",
        status="success",
        file=str(path),
        editor_type=settings.editor_type.value,
        open_current_file=settings.open_current_file,
        metrics={"duration_ms": int((time.perf_counter() - start_time) * 1000)}
    )
    return settings


def write_settings_file(path: Path, content: str) -> None:
    """
    Replace the settings file in one step so a reader never sees half of it.

    The temp file lives next to the target so os.replace stays on one
    filesystem. Raises OSError; the temp file is removed on failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, staged = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    staged = Path(staged)

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(staged, path)
    except OSError:
        staged.unlink(missing_ok=True)
        raise


def _toml_bool(value: bool) -> str:
    return "true" if value else "false"


def _toml_string(value: str) -> str:
    # JSON string escapes are valid TOML basic-string escapes
    return json.dumps(value, ensure_ascii=False)


def render_settings(settings: LauncherSettings) -> str:
    lines = [
        "# Vault Launcher settings",
        "# Auto-generated by vault-launcher",
        "",
        f"editor_type = {_toml_string(settings.editor_type.value)}",
        f"open_current_file = {_toml_bool(settings.open_current_file)}",
        f"timeout_ms = {int(settings.timeout_ms)}",
    ]

    paths_str = ", ".join(_toml_string(p) for p in settings.extra_paths)
    lines.append(f"extra_paths = [{paths_str}]")

    lines.append("")
    lines.append("# Editors shown in the command palette")
    lines.append("[enabled_editors]")
    for editor in Editor:
        lines.append(f"{editor.value} = {_toml_bool(settings.enabled_editors.get(editor, False))}")

    return "\n".join(lines) + "\n"


def save_settings(settings: LauncherSettings, path: Path | None = None) -> bool:
    """
    Save settings to TOML atomically.

    Returns:
        True if written, False if the write failed (logged)
    """
    path = path or settings_path()
    try:
        write_settings_file(path, render_settings(settings))
    except OSError as e:
        logger.error(
            "Failed to save settings - changes may not persist",
            operation="save_settings",
            status="failed",
            file=str(path),
            error=str(e),
            errno=e.errno
        )
        return False

    logger.debug(
        "Settings saved successfully",
        operation="save_settings",
        status="success",
        file=str(path)
    )
    return True
