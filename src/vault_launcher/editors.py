# =============================================================================
# Editor Registry
# =============================================================================

from dataclasses import dataclass
from enum import Enum


class Editor(str, Enum):
    """Supported editors, in canonical order."""

    VSCODE = "vscode"
    CURSOR = "cursor"
    ANTIGRAVITY = "antigravity"
    ZED = "zed"


@dataclass(frozen=True)
class EditorDescriptor:
    """
    Launch metadata for one editor.

    An editor without a ``cli`` binary is GUI-only and is launched through
    ``open`` exclusively. ``directory_first`` puts the vault before the file
    when the GUI launcher receives both.
    """

    label: str
    app_name: str
    bundle_id: str
    cli: str | None = None
    directory_first: bool = False

    @property
    def uses_cli(self) -> bool:
        return self.cli is not None


EDITOR_CONFIG: dict[Editor, EditorDescriptor] = {
    Editor.VSCODE: EditorDescriptor(
        label="Visual Studio Code",
        app_name="Visual Studio Code",
        bundle_id="com.microsoft.VSCode",
        cli="code",
    ),
    Editor.CURSOR: EditorDescriptor(
        label="Cursor",
        app_name="Cursor",
        bundle_id="com.todesktop.230313mzl4w4u92",
    ),
    Editor.ANTIGRAVITY: EditorDescriptor(
        label="Antigravity",
        app_name="Antigravity",
        bundle_id="com.google.antigravity",
        cli="agy",
    ),
    Editor.ZED: EditorDescriptor(
        label="Zed",
        app_name="Zed",
        bundle_id="dev.zed.Zed",
        directory_first=True,
    ),
}


def descriptor_of(editor: Editor) -> EditorDescriptor:
    return EDITOR_CONFIG[editor]


def label_of(editor: Editor) -> str:
    return EDITOR_CONFIG[editor].label
