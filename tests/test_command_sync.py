from vault_launcher.command_sync import CommandSyncAction, SyncActionKind, reconcile_commands
from vault_launcher.editors import Editor

REGISTER = SyncActionKind.REGISTER
UNREGISTER = SyncActionKind.UNREGISTER


def enabled(**flags):
    return {editor: flags.get(editor.value, False) for editor in Editor}


def test_enable_unregistered_editor_registers():
    actions = reconcile_commands({Editor.VSCODE: True}, set())
    assert actions == [CommandSyncAction(REGISTER, Editor.VSCODE)]


def test_disable_registered_editor_unregisters():
    actions = reconcile_commands({Editor.VSCODE: False}, {Editor.VSCODE})
    assert actions == [CommandSyncAction(UNREGISTER, Editor.VSCODE)]


def test_no_state_change_yields_nothing():
    assert reconcile_commands(enabled(vscode=True), {Editor.VSCODE}) == []


def test_enable_all_registers_in_canonical_order():
    actions = reconcile_commands(enabled(vscode=True, cursor=True, antigravity=True, zed=True), set())
    assert actions == [CommandSyncAction(REGISTER, editor) for editor in Editor]


def test_mixed_states():
    actions = reconcile_commands(
        enabled(vscode=True, antigravity=True),
        {Editor.CURSOR, Editor.ANTIGRAVITY, Editor.ZED},
    )
    assert actions == [
        CommandSyncAction(REGISTER, Editor.VSCODE),
        CommandSyncAction(UNREGISTER, Editor.CURSOR),
        CommandSyncAction(UNREGISTER, Editor.ZED),
    ]
