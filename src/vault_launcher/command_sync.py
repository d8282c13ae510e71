# =============================================================================
# Command Palette Sync
# =============================================================================

from collections.abc import Mapping, Set
from dataclasses import dataclass
from enum import Enum

from .editors import Editor


class SyncActionKind(Enum):
    REGISTER = "register"
    UNREGISTER = "unregister"


@dataclass(frozen=True)
class CommandSyncAction:
    kind: SyncActionKind
    editor: Editor


def reconcile_commands(
    enabled_editors: Mapping[Editor, bool],
    registered: Set[Editor],
) -> list[CommandSyncAction]:
    """
    Compute the register/unregister actions that bring palette commands in
    line with the enabled editors. Editors missing from ``enabled_editors``
    count as disabled.
    """
    actions = []
    for editor in Editor:
        is_enabled = bool(enabled_editors.get(editor, False))
        is_registered = editor in registered
        if is_enabled and not is_registered:
            actions.append(CommandSyncAction(SyncActionKind.REGISTER, editor))
        elif not is_enabled and is_registered:
            actions.append(CommandSyncAction(SyncActionKind.UNREGISTER, editor))
    return actions
