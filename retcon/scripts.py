"""Writing, printing and running remediation scripts."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from retcon.remediation import RemediationCommand

_POWERSHELL = "powershell.exe"


def _now() -> datetime:
    return datetime.now().astimezone()


def _command_lines(commands: Iterable[RemediationCommand]) -> list[str]:
    lines: list[str] = []
    for command in commands:
        if command.description is not None:
            lines.append(f"# {command.description}")
        lines.append(f"# {command.command}" if command.is_comment else command.command)
    return lines


def render_script(commands: Iterable[RemediationCommand], generated: object) -> str:
    """Return the text of a remediation script stamped with ``generated``."""
    header = (
        "# AD Remediation Script\n"
        f"# Generated: {generated}\n\n"
        "Import-Module ActiveDirectory\n\n"
    )
    return header + "".join(f"{line}\n" for line in _command_lines(commands))


def write_ps1(commands: Iterable[RemediationCommand], cleanup_script_file: str | Path) -> None:
    """Write the commands to a PowerShell script, creating its directory if needed."""
    path = Path(cleanup_script_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_script(commands, _now()), encoding="utf-8")
    print(f"Script written to: {path}")


def write_to_console(commands: Iterable[RemediationCommand]) -> None:
    """Print the commands as a dry run."""
    print("# AD Remediation Commands (dry run)")
    print(f"# Generated: {_now()}\n")
    for line in _command_lines(commands):
        print(line)


def execute_script(script_path: str) -> int:
    """Run a PowerShell script and report the outcome; returns its exit code."""
    print(f"Executing script: {script_path} with PowerShell")
    result = subprocess.run(
        [_POWERSHELL, "-ExecutionPolicy", "Bypass", "-NonInteractive", "-File", script_path],
        capture_output=True,
    )
    if result.returncode == 0:
        print("Script executed successfully")
    else:
        code = result.returncode if result.returncode >= 0 else -1
        error_text = (result.stderr or b"").decode("utf-8", "replace")
        print(f"Script execution failed with code {code}: {error_text}", file=sys.stderr)
    return result.returncode