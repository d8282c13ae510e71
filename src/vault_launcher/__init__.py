"""
Vault Launcher

Opens a vault directory (and optionally the active file) in an external
editor, trying the editor's CLI, then `open -a <app>`, then `open -b <bundle>`
until one launch succeeds.

Logs: ~/Library/Logs/vault-launcher/launcher.jsonl (JSONL, rotated)
Settings: ~/.config/vault-launcher/settings.toml
"""

from .command_sync import CommandSyncAction, SyncActionKind, reconcile_commands
from .editors import EDITOR_CONFIG, Editor, EditorDescriptor, descriptor_of, label_of
from .errors import AttemptOutcome, FailureReason
from .executor import execute_plan
from .plan import LaunchCommand, LaunchPlan, build_launch_plan
from .runner import LAUNCH_TIMEOUT_MS, TAIL_BYTES, TailBuffer, run_command

__version__ = "1.0.0"

__all__ = [
    "AttemptOutcome",
    "CommandSyncAction",
    "EDITOR_CONFIG",
    "Editor",
    "EditorDescriptor",
    "FailureReason",
    "LAUNCH_TIMEOUT_MS",
    "LaunchCommand",
    "LaunchPlan",
    "SyncActionKind",
    "TAIL_BYTES",
    "TailBuffer",
    "build_launch_plan",
    "descriptor_of",
    "execute_plan",
    "label_of",
    "reconcile_commands",
    "run_command",
]
