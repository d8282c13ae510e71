# =============================================================================
# Launcher Host
# =============================================================================

import asyncio
import os
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from .command_sync import CommandSyncAction, SyncActionKind, reconcile_commands
from .config_loader import LauncherSettings
from .editors import Editor, label_of
from .executor import execute_plan, failure_message
from .notify import show_notice
from .plan import build_launch_plan


def command_id(editor: Editor) -> str:
    return f"open-in-{editor.value}"


@dataclass
class PaletteCommand:
    id: str
    name: str
    callback: Callable[[], object]


class CommandRegistry:
    """Palette commands currently registered with the host."""

    def __init__(self):
        self._commands: dict[str, PaletteCommand] = {}

    def register(self, command: PaletteCommand) -> None:
        self._commands[command.id] = command

    def unregister(self, command_id: str) -> None:
        self._commands.pop(command_id, None)

    def get(self, command_id: str) -> PaletteCommand | None:
        return self._commands.get(command_id)

    def ids(self) -> list[str]:
        return list(self._commands)


class VaultLauncher:
    """
    Host-side glue: settings, palette commands, and launch requests.

    Only one launch runs at a time; requests arriving while a launch is in
    progress are ignored.
    """

    def __init__(
        self,
        settings: LauncherSettings,
        *,
        notifier: Callable[[str], None] = show_notice,
        spawn=None,
        registry: CommandRegistry | None = None,
    ):
        self.settings = settings
        self.notifier = notifier
        self.spawn = spawn
        self.registry = registry if registry is not None else CommandRegistry()
        self.registered: set[Editor] = set()
        self.is_launching = False
        self.vault_path: str | None = None

    def sync_commands(self) -> list[CommandSyncAction]:
        actions = reconcile_commands(self.settings.enabled_editors, self.registered)
        for action in actions:
            editor = action.editor
            if action.kind is SyncActionKind.REGISTER:
                self.registry.register(PaletteCommand(
                    id=command_id(editor),
                    name=f"Open in {label_of(editor)}",
                    callback=lambda editor=editor: self.launch_from_palette(editor),
                ))
                self.registered.add(editor)
            else:
                self.registry.unregister(command_id(editor))
                self.registered.discard(editor)

        if actions:
            logger.debug(
                "Palette commands synced",
                operation="sync_commands",
                status="success",
                actions=[f"{a.kind.value}:{a.editor.value}" for a in actions]
            )
        return actions

    def reload_settings(self, settings: LauncherSettings) -> list[CommandSyncAction]:
        self.settings = settings
        return self.sync_commands()

    def launch_from_palette(self, editor: Editor):
        """Coroutine for a palette command; targets the last launched vault."""
        return self.handle_launch(self.vault_path, editor=editor)

    async def post_notice(self, message: str) -> None:
        """Run the notifier in a worker thread; osascript blocks for up to 5 s."""
        try:
            await asyncio.to_thread(self.notifier, message)
        except Exception as e:
            logger.opt(exception=e).error(
                "Notice delivery failed",
                operation="post_notice",
                status="failed",
                notice=message
            )

    @staticmethod
    def resolve_active_file(vault_path: str, active_file: str | None) -> str | None:
        """Absolute path of the active file; relative paths are vault-relative."""
        if not active_file:
            return None
        if os.path.isabs(active_file):
            return active_file
        return os.path.join(vault_path, active_file)

    async def handle_launch(
        self,
        vault_path: str | None,
        active_file: str | None = None,
        editor: Editor | None = None,
    ) -> bool:
        """
        Launch the vault (and optionally the active file) in an editor.

        Args:
            vault_path: Absolute vault directory
            active_file: Active file, absolute or vault-relative
            editor: Editor override (default: settings.editor_type)

        Returns:
            True if the editor was launched
        """
        if self.is_launching:
            logger.debug(
                "Launch already in progress - ignoring request",
                operation="handle_launch",
                status="skipped"
            )
            return False

        selected = editor or self.settings.editor_type
        editor_label = label_of(selected)

        self.is_launching = True
        try:
            if not vault_path:
                raise ValueError("No vault path to open")
            self.vault_path = vault_path

            plan = build_launch_plan(
                selected,
                vault_path,
                self.resolve_active_file(vault_path, active_file),
                self.settings.open_current_file,
            )

            await self.post_notice(f"Opening in {editor_label}")

            failure_notices: list[str] = []
            launched = await execute_plan(
                plan,
                timeout_ms=self.settings.timeout_ms,
                on_failure_notice=failure_notices.append,
                spawn=self.spawn,
                extra_paths=self.settings.extra_paths,
            )
            for message in failure_notices:
                await self.post_notice(message)
            return launched
        except (OSError, ValueError) as e:
            logger.error(
                "Failed to build launch plan",
                operation="handle_launch",
                status="failed",
                editor=selected.value,
                error=str(e),
                error_type=type(e).__name__
            )
            await self.post_notice(failure_message(selected))
            return False
        finally:
            self.is_launching = False
