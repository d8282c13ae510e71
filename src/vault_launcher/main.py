# =============================================================================
# Command-Line Entry Point
# =============================================================================

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from loguru import logger

from .config_loader import load_settings
from .editors import EDITOR_CONFIG, Editor
from .launcher import VaultLauncher
from .logging_config import setup_logger
from .plan import build_launch_plan


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("vault", help="Vault directory to open")
    parser.add_argument("--file", help="Active file (absolute or vault-relative)")
    parser.add_argument(
        "--editor",
        choices=[editor.value for editor in Editor],
        help="Editor to launch (default: from settings)"
    )
    parser.add_argument(
        "--open-file",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also open --file in the editor (default: from settings)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault-launcher",
        description="Open a vault directory in an external editor."
    )
    parser.add_argument("--config", type=Path, help="Settings file (TOML)")
    parser.add_argument("--log-level", default="WARNING", help="stderr log level")
    parser.add_argument("--no-log-file", action="store_true", help="Skip the rotating log file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    open_parser = subparsers.add_parser("open", help="Launch the editor")
    _add_target_arguments(open_parser)
    open_parser.add_argument("--timeout-ms", type=positive_int, help="Per-attempt timeout")

    plan_parser = subparsers.add_parser("plan", help="Print the launch plan as JSON")
    _add_target_arguments(plan_parser)

    subparsers.add_parser("editors", help="List supported editors")

    return parser


def positive_int(value: str) -> int:
    """argparse type for millisecond timeouts; rejects zero and negatives."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def _apply_overrides(settings, args):
    # `editors` defines none of the target options
    editor = getattr(args, "editor", None)
    if editor:
        settings.editor_type = Editor(editor)
    open_file = getattr(args, "open_file", None)
    if open_file is not None:
        settings.open_current_file = open_file
    timeout_ms = getattr(args, "timeout_ms", None)
    if timeout_ms is not None:
        settings.timeout_ms = timeout_ms
    return settings


def cmd_open(settings, args) -> int:
    launcher = VaultLauncher(settings)
    launcher.sync_commands()
    vault = os.path.abspath(args.vault)
    launched = asyncio.run(launcher.handle_launch(vault, args.file))
    return 0 if launched else 1


def cmd_plan(settings, args) -> int:
    vault = os.path.abspath(args.vault)
    plan = build_launch_plan(
        settings.editor_type,
        vault,
        VaultLauncher.resolve_active_file(vault, args.file),
        settings.open_current_file,
    )
    payload = {
        "editor": plan.editor.value,
        "attempts": [
            {"command": attempt.command, "args": list(attempt.args)}
            for attempt in plan.attempts
        ],
    }
    print(json.dumps(payload, indent=2))
    return 0


def cmd_editors(settings, args) -> int:
    for editor, descriptor in EDITOR_CONFIG.items():
        enabled = "palette" if settings.enabled_editors.get(editor) else "-"
        default = "*" if editor is settings.editor_type else " "
        print(f"{default} {editor.value:<12} {descriptor.label:<20} "
              f"{descriptor.cli or '(gui only)':<12} {enabled}")
    return 0


COMMANDS = {
    "open": cmd_open,
    "plan": cmd_plan,
    "editors": cmd_editors,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(level=args.log_level.upper(), log_to_file=not args.no_log_file)

    settings = _apply_overrides(load_settings(args.config), args)

    logger.debug(
        "Vault launcher starting",
        operation="main",
        status="started",
        command=args.command
    )
    return COMMANDS[args.command](settings, args)


if __name__ == "__main__":
    sys.exit(main())
