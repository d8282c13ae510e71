"""Tests for launch plan execution (retry, stop and notice policy)."""

import asyncio
import errno

import pytest

from vault_launcher.editors import Editor
from vault_launcher.executor import execute_plan, failure_message
from vault_launcher.plan import build_launch_plan
from vault_launcher.runner import TAIL_BYTES


@pytest.fixture
def vscode_plan(vault_path, active_file_path):
    return build_launch_plan(Editor.VSCODE, vault_path, active_file_path, open_current_file=True)


@pytest.mark.asyncio
async def test_stops_on_first_success(make_spawner, vscode_plan):
    spawner = make_spawner([{"returncode": 0}])
    notices = []

    launched = await execute_plan(vscode_plan, spawn=spawner, on_failure_notice=notices.append)

    assert launched is True
    assert spawner.calls == [vscode_plan.attempts[0]]
    assert notices == []


@pytest.mark.asyncio
async def test_retries_next_attempt_on_non_zero_exit(make_spawner, vscode_plan):
    spawner = make_spawner([{"returncode": 1}, {"returncode": 0}])
    notices = []

    launched = await execute_plan(vscode_plan, spawn=spawner, on_failure_notice=notices.append)

    assert launched is True
    assert spawner.calls == list(vscode_plan.attempts[:2])
    assert notices == []


@pytest.mark.asyncio
async def test_spawn_error_retries_next_attempt(make_spawner, vault_path, active_file_path, log_records):
    plan = build_launch_plan(Editor.ANTIGRAVITY, vault_path, active_file_path, open_current_file=True)
    spawner = make_spawner([FileNotFoundError(errno.ENOENT, "missing", "agy"), {"returncode": 0}])

    await execute_plan(plan, spawn=spawner)

    assert spawner.calls == list(plan.attempts[:2])
    assert any(r["message"] == "CLI missing from PATH" for r in log_records)


@pytest.mark.asyncio
async def test_signal_failure_retries_next_attempt(make_spawner, vault_path, active_file_path):
    plan = build_launch_plan(Editor.ANTIGRAVITY, vault_path, active_file_path, open_current_file=True)
    spawner = make_spawner([{"returncode": -15}, {"returncode": 0}])

    assert await execute_plan(plan, spawn=spawner) is True
    assert spawner.calls == list(plan.attempts[:2])


@pytest.mark.asyncio
async def test_gui_only_retries_bundle_id_after_app_name(make_spawner, vault_path, active_file_path):
    plan = build_launch_plan(Editor.CURSOR, vault_path, active_file_path, open_current_file=True)
    spawner = make_spawner([{"returncode": 1}, {"returncode": 0}])

    await execute_plan(plan, spawn=spawner)

    assert [call.args[0] for call in spawner.calls] == ["-a", "-b"]


@pytest.mark.asyncio
async def test_timeout_stops_chain(make_spawner, vscode_plan, log_records):
    spawner = make_spawner([{"hang": True}])
    notices = []

    launched = await asyncio.wait_for(
        execute_plan(vscode_plan, spawn=spawner, timeout_ms=5, on_failure_notice=notices.append),
        1,
    )

    assert launched is False
    assert spawner.calls == [vscode_plan.attempts[0]]
    assert spawner.terminate_calls == 1
    assert notices == [failure_message(Editor.VSCODE)]
    assert any(r["message"] == "Launch timed out" for r in log_records)


@pytest.mark.asyncio
async def test_timeout_stop_is_not_logged_as_exhausted(make_spawner, vscode_plan, log_records):
    spawner = make_spawner([{"hang": True}])

    await asyncio.wait_for(execute_plan(vscode_plan, spawn=spawner, timeout_ms=5), 1)

    statuses = [r["extra"].get("status") for r in log_records]
    assert "exhausted" not in statuses
    stopped = [r for r in log_records if r["extra"].get("status") == "timed_out"]
    assert len(stopped) == 1
    assert stopped[0]["message"] == "Launch plan stopped after timeout"
    assert stopped[0]["extra"]["attempt"] == 1
    assert stopped[0]["extra"]["metrics"]["attempts_skipped"] == len(vscode_plan.attempts) - 1


@pytest.mark.asyncio
async def test_failure_notice_emitted_once_after_all_attempts_fail(make_spawner, vault_path, active_file_path):
    plan = build_launch_plan(Editor.ANTIGRAVITY, vault_path, active_file_path, open_current_file=True)
    spawner = make_spawner([{"returncode": 1}] * 3)
    notices = []

    launched = await execute_plan(plan, spawn=spawner, on_failure_notice=notices.append)

    assert launched is False
    assert len(spawner.calls) == len(plan.attempts)
    assert notices == ["Failed to open in Antigravity. Check console for details."]


@pytest.mark.asyncio
async def test_failure_logs_truncated_output(make_spawner, vscode_plan, active_file_path, log_records):
    long_stdout = "x" * 10000
    long_stderr = "y" * 9000
    spawner = make_spawner([
        {"returncode": 1, "stdout": long_stdout.encode(), "stderr": long_stderr.encode()},
        {"returncode": 0},
    ])

    await execute_plan(vscode_plan, spawn=spawner)

    failures = [r for r in log_records if r["message"] == "Launch failed"]
    assert len(failures) == 1
    extra = failures[0]["extra"]
    assert extra["stdout"] == "x" * TAIL_BYTES
    assert extra["stderr"] == "y" * TAIL_BYTES
    assert extra["command"] == "code"
    assert active_file_path in extra["args"]
    assert extra["code"] == 1


@pytest.mark.asyncio
async def test_spawn_env_prepends_editor_paths(make_spawner, vscode_plan):
    spawner = make_spawner([{"returncode": 0}])
    environ = {"PATH": "/usr/bin:/bin", "HOME": "/Users/test"}

    await execute_plan(vscode_plan, spawn=spawner, environ=environ)

    parts = spawner.envs[0]["PATH"].split(":")
    assert parts[:3] == [
        "/Users/test/.antigravity/antigravity/bin",
        "/opt/homebrew/bin",
        "/usr/local/bin",
    ]
    assert "/usr/bin" in parts and "/bin" in parts
    assert environ["PATH"] == "/usr/bin:/bin"


@pytest.mark.asyncio
async def test_same_env_used_for_every_attempt(make_spawner, vscode_plan):
    spawner = make_spawner([{"returncode": 1}, {"returncode": 1}, {"returncode": 0}])

    await execute_plan(vscode_plan, spawn=spawner, environ={"PATH": "/bin"})

    assert len(spawner.envs) == 3
    assert spawner.envs[0] == spawner.envs[1] == spawner.envs[2]


@pytest.mark.asyncio
async def test_unexpected_exception_does_not_escape(make_spawner, vscode_plan):
    spawner = make_spawner([RuntimeError("broken spawner"), {"returncode": 0}])

    assert await execute_plan(vscode_plan, spawn=spawner) is True
    assert len(spawner.calls) == 2


@pytest.mark.asyncio
async def test_raising_notice_callback_is_contained(make_spawner, vault_path):
    plan = build_launch_plan(Editor.ZED, vault_path)
    spawner = make_spawner([{"returncode": 1}, {"returncode": 1}])

    def broken_notice(message):
        raise RuntimeError("notice surface unavailable")

    assert await execute_plan(plan, spawn=spawner, on_failure_notice=broken_notice) is False
