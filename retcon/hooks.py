"""Running scenario hook scripts."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_POWERSHELL = "powershell.exe"


class HookError(Exception):
    """A hook script could not be found or run, or it failed."""


@dataclass
class HookOutput:
    """The outcome of one hook script."""

    hook_type: Any
    path: Path
    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    success: bool = False


def execute_hooks(hooks: Iterable[Any], hook_type: Any, base_dir: str | Path) -> list[HookOutput]:
    """Run the hooks of ``hook_type`` in order.

    Each hook needs ``hook_type``, ``path``, ``arguments`` and
    ``continue_on_error``. Relative paths are resolved against ``base_dir``.
    Raises HookError for a missing script or a failure that may not be skipped.
    """
    outputs: list[HookOutput] = []
    for hook in hooks:
        if hook.hook_type != hook_type:
            continue
        hook_path = Path(hook.path)
        script_path = hook_path if hook_path.is_absolute() else Path(base_dir) / hook_path
        if not script_path.exists():
            raise HookError(f'Hook script not found at path: "{script_path}"')
        try:
            execute_script_with_arguments(
                str(script_path), list(hook.arguments), hook.continue_on_error
            )
        except HookError as exc:
            outputs.append(
                HookOutput(hook.hook_type, script_path, 1, stderr=str(exc), success=False)
            )
            if not hook.continue_on_error:
                raise
        else:
            outputs.append(HookOutput(hook.hook_type, script_path, 0, success=True))
    return outputs


def execute_script_with_arguments(
    script_path: str, arguments: Sequence[str], continue_on_error: bool
) -> None:
    """Run a PowerShell script; a failure raises HookError unless it may be skipped."""
    command = [
        _POWERSHELL,
        "-ExecutionPolicy",
        "Bypass",
        "-NonInteractive",
        "-File",
        script_path,
        *arguments,
    ]
    try:
        result = subprocess.run(command, capture_output=True)
    except OSError as exc:
        raise HookError(f"Failed to execute script: {exc}") from exc
    if result.returncode != 0:
        code = result.returncode if result.returncode >= 0 else -1
        error_text = (result.stderr or b"").decode("utf-8", "replace")
        message = f"Script execution failed with code {code}: {error_text}"
        if continue_on_error:
            print(message, file=sys.stderr)
            return
        raise HookError(message)
    print("Script executed successfully")