"""Runs Python scripts given as text in a separate interpreter."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass
class PythonScriptResult:
    """Captured output of a script run."""

    stdout: str
    stderr: str
    exit_code: int | None


class PythonInvokerError(Exception):
    """Base error for script execution failures."""


class CommandError(PythonInvokerError):
    """The interpreter could not be started."""

    def __init__(self, reason: object) -> None:
        super().__init__(f"Failed to execute Python script: {reason}")
        self.reason = reason


class ScriptError(PythonInvokerError):
    """The script ran but exited unsuccessfully."""

    def __init__(self, result: PythonScriptResult) -> None:
        super().__init__(
            "Script execution failed: "
            f"Exit Code: {result.exit_code}\nStdout: {result.stdout}\nStderr: {result.stderr}"
        )
        self.result = result


class PythonInvoker:
    """Executes scripts with `<interpreter> -c <script> <args...>`."""

    def __init__(self, interpreter: str = "python3") -> None:
        self.interpreter = interpreter

    def run_script(self, script: str, args: Sequence[str] = ()) -> PythonScriptResult:
        """Run the script and return its output; raise ScriptError on a non-zero exit."""
        log.info("Executing Python script with args: %r", list(args))
        try:
            completed = subprocess.run(
                [self.interpreter, "-c", script, *args],
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise CommandError(exc) from exc

        # A negative return code means the process was killed by a signal.
        exit_code = completed.returncode if completed.returncode >= 0 else None
        result = PythonScriptResult(
            stdout=completed.stdout.decode("utf-8", errors="replace"),
            stderr=completed.stderr.decode("utf-8", errors="replace"),
            exit_code=exit_code,
        )
        if completed.returncode == 0:
            log.info("Python script executed successfully")
            return result
        log.error("Python script execution failed with exit code: %s", exit_code)
        raise ScriptError(result)