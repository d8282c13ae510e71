# =============================================================================
# Launch Plan Builder
# =============================================================================

from dataclasses import dataclass

from .editors import Editor, descriptor_of

# CLI flag that opens the editor with the cursor on the given file
GOTO_FLAG = "-g"
OPEN_COMMAND = "open"


@dataclass(frozen=True)
class LaunchCommand:
    command: str
    args: tuple[str, ...] = ()

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


@dataclass(frozen=True)
class LaunchPlan:
    """Ordered launch attempts for one request, earliest first."""

    editor: Editor
    attempts: tuple[LaunchCommand, ...]

    def __post_init__(self):
        if not self.attempts:
            raise ValueError(f"Launch plan for {self.editor.value} has no attempts")


def _wants_file(active_file_path: str | None, open_current_file: bool) -> bool:
    return bool(open_current_file and active_file_path)


def build_cli_args(
    vault_path: str,
    active_file_path: str | None,
    open_current_file: bool,
) -> tuple[str, ...]:
    if _wants_file(active_file_path, open_current_file):
        return (GOTO_FLAG, active_file_path, vault_path)
    return (vault_path,)


def build_open_args(
    vault_path: str,
    active_file_path: str | None,
    open_current_file: bool,
    directory_first: bool = False,
) -> tuple[str, ...]:
    if _wants_file(active_file_path, open_current_file):
        if directory_first:
            return (vault_path, active_file_path)
        return (active_file_path, vault_path)
    return (vault_path,)


def build_launch_plan(
    editor: Editor,
    vault_path: str,
    active_file_path: str | None = None,
    open_current_file: bool = False,
) -> LaunchPlan:
    """
    Build the ordered launch attempts for an editor.

    CLI-capable editors try the CLI binary first, then ``open -a <app name>``,
    then ``open -b <bundle id>``. GUI-only editors skip the CLI attempt.
    Every path stays a single argument; nothing is joined into a shell string.

    Args:
        editor: Target editor
        vault_path: Absolute vault directory
        active_file_path: Absolute path of the active file, if any
        open_current_file: Whether to open the active file as well

    Returns:
        LaunchPlan with two or three attempts
    """
    descriptor = descriptor_of(editor)
    open_args = build_open_args(
        vault_path, active_file_path, open_current_file, descriptor.directory_first
    )
    attempts = [
        LaunchCommand(OPEN_COMMAND, ("-a", descriptor.app_name, *open_args)),
        LaunchCommand(OPEN_COMMAND, ("-b", descriptor.bundle_id, *open_args)),
    ]

    if descriptor.uses_cli:
        cli_args = build_cli_args(vault_path, active_file_path, open_current_file)
        attempts.insert(0, LaunchCommand(descriptor.cli, cli_args))

    return LaunchPlan(editor=editor, attempts=tuple(attempts))
