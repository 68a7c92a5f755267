# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution with resource limits."""

from __future__ import annotations

import logging
import os
import shutil
import signal

# Bandit: subprocess usage is intentional; we provide a controlled wrapper around
# external tool execution, normalising arguments and disabling ``shell=True``.
import subprocess  # nosec B404 suppression_valid: Shell-free subprocess wrapper enforces safe execution.
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess
from typing import Final, TextIO

from pydantic import BaseModel, ConfigDict, Field

TIMEOUT_EXIT_CODE: Final[int] = 124
DEFAULT_TIMEOUT_SECONDS: Final[int] = 300
DEFAULT_MAX_OUTPUT_LINES: Final[int] = 10_000
TIMEOUT_WARNING_CEILING: Final[int] = 3600
TRUNCATION_MARKER: Final[str] = "Warning: Output truncated - too many lines"

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CommandOptions:
    """Immutable command execution options."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    check: bool = True
    capture_output: bool = False
    text: bool = True
    timeout: float | None = None
    discard_stdin: bool = False
    input_text: str | None = None
    merge_stderr: bool = False

class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true.

    The captured ``stdout`` is kept on the exception: many linters exit
    non-zero precisely because they found something, and callers parse it.
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        super().__init__(
            f"Command '{command[0]}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class TimedOutProcess(CompletedProcess[str]):
    """Completed process produced when the child was killed after its timeout."""


def _ensure_text(value: str | bytes | None) -> str | None:
    """Return ``value`` decoded to text when supplied as ``bytes``."""

    if value is None or isinstance(value, str):
        return value
    return value.decode(errors="ignore")


def _normalize_args(args: Sequence[str]) -> list[str]:
    """Normalise the subprocess argument sequence.

    Args:
        args: Raw command arguments supplied by the caller.

    Returns:
        list[str]: Validated argument list suitable for subprocess execution.

    Raises:
        ValueError: If no arguments are provided.
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
    """

    if not args:
        msg = "subprocess command requires at least one argument"
        raise ValueError(msg)

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        if not head_path.exists():
            raise FileNotFoundError(f"Executable '{head}' does not exist")
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        msg = f"Executable '{head}' was not found on PATH"
        raise FileNotFoundError(msg)
    return [resolved, *rest]


def run_command(
    args: Sequence[str],
    *,
    options: CommandOptions | None = None,
) -> CompletedProcess[str]:
    """Execute ``args`` after normalising the executable path.

    Args:
        args: Command and argument sequence to execute.
        options: Base options configuring execution semantics.

    Returns:
        CompletedProcess: Subprocess execution metadata. A timed-out child is
        killed and reported as a :class:`TimedOutProcess` with exit status
        :data:`TIMEOUT_EXIT_CODE`.

    Raises:
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
        SubprocessExecutionError: When ``check`` is true and the process exits
            with a non-zero status.
    """

    normalized = _normalize_args(args)
    resolved_options = options or CommandOptions()

    stdin = None
    if resolved_options.input_text is None and resolved_options.discard_stdin:
        stdin = subprocess.DEVNULL
    stdout = subprocess.PIPE if resolved_options.capture_output else None
    stderr = None
    if resolved_options.capture_output:
        stderr = subprocess.STDOUT if resolved_options.merge_stderr else subprocess.PIPE

    try:
        # Bandit: commands originate from adapter definitions; we pass
        # argument lists directly without shell expansion.
        completed: CompletedProcess[str] = subprocess.run(  # nosec B603 - controlled arguments, not user supplied
            normalized,
            cwd=str(resolved_options.cwd) if resolved_options.cwd is not None else None,
            env=dict(resolved_options.env) if resolved_options.env is not None else None,
            check=False,
            input=resolved_options.input_text,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
            text=resolved_options.text,
            timeout=resolved_options.timeout,
        )
    except subprocess.TimeoutExpired as exc:
        timeout_value = resolved_options.timeout
        timeout_msg = (
            f"Command timed out after {timeout_value:.1f}s" if timeout_value is not None else "Command timed out"
        )
        partial_stderr = _ensure_text(exc.stderr)
        LOGGER.warning("%s: %s", normalized[0], timeout_msg)
        completed = TimedOutProcess(
            args=list(normalized),
            returncode=TIMEOUT_EXIT_CODE,
            stdout=_ensure_text(exc.stdout) or "",
            stderr=f"{partial_stderr}\n{timeout_msg}" if partial_stderr else timeout_msg,
        )

    if resolved_options.check and completed.returncode != 0:
        raise SubprocessExecutionError(
            normalized,
            completed.returncode,
            completed.stdout if isinstance(completed.stdout, str) else None,
            completed.stderr if isinstance(completed.stderr, str) else None,
        )

    return completed


class ExecutionLimits(BaseModel):
    """Resource bounds applied to a single toolchain invocation."""

    model_config = ConfigDict(frozen=True)

    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    max_output_lines: int = Field(default=DEFAULT_MAX_OUTPUT_LINES, gt=0)

    def warnings(self) -> list[str]:
        """Return advisory messages about unusual (but valid) limits."""

        if self.timeout > TIMEOUT_WARNING_CEILING:
            return [
                f"Timeout of {self.timeout}s is longer than 1 hour. "
                "Long timeouts may indicate infinite loops or excessive computation.",
            ]
        return []


@dataclass(slots=True, frozen=True)
class CapturedOutput:
    """Output captured from a toolchain run (or read in passthrough mode)."""

    lines: tuple[str, ...]
    returncode: int = 0
    timed_out: bool = False
    truncated: bool = False

    @property
    def text(self) -> str:
        """Return the captured lines joined by newlines."""

        return "\n".join(self.lines)


def cap_output_lines(lines: Iterable[str], limit: int) -> tuple[list[str], bool]:
    """Keep the first ``limit`` lines and flag anything beyond as truncated.

    Args:
        lines: Output lines in emission order.
        limit: Maximum number of lines to keep.

    Returns:
        tuple[list[str], bool]: Kept lines (with :data:`TRUNCATION_MARKER`
        appended when truncation happened) and the truncation flag.
    """

    kept: list[str] = []
    for line in lines:
        if len(kept) >= limit:
            LOGGER.warning("Output truncated at %d lines to prevent memory exhaustion", limit)
            kept.append(TRUNCATION_MARKER)
            return kept, True
        kept.append(line)
    return kept, False


def capture_stream(stream: TextIO, limits: ExecutionLimits) -> CapturedOutput:
    """Read toolchain output from ``stream`` (passthrough mode) within ``limits``."""

    lines, truncated = cap_output_lines((line.rstrip("\r\n") for line in stream), limits.max_output_lines)
    return CapturedOutput(lines=tuple(lines), truncated=truncated)


def _kill_process_tree(process: subprocess.Popen[str]) -> None:
    """Kill ``process`` and the session it leads.

    On POSIX the whole process group is killed even after the leader exited:
    a surviving grandchild would otherwise keep the output pipe open.
    """

    try:
        if os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        elif process.poll() is None:
            process.kill()
    except (ProcessLookupError, PermissionError):
        LOGGER.debug("process %d exited before it could be killed", process.pid)


def run_with_limits(
    args: Sequence[str],
    limits: ExecutionLimits,
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CapturedOutput:
    """Run a toolchain command with stderr merged into stdout and bounded resources.

    Output is read line by line while the child runs. Once
    ``limits.max_output_lines`` lines are kept, the next line ends the run:
    :data:`TRUNCATION_MARKER` is appended and the child is killed. A watchdog
    kills the child (and its process group) when ``limits.timeout`` elapses.

    Non-zero exit codes are returned, not raised: deciding whether they mean
    "findings reported" or "tool crashed" is each adapter's job.

    Args:
        args: Command and argument sequence to execute.
        limits: Timeout and output-size bounds.
        cwd: Working directory for the child process.
        env: Optional replacement environment.

    Returns:
        CapturedOutput: Captured (possibly truncated) output and exit metadata.
        ``timed_out`` is only set when the watchdog ended the run.

    Raises:
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
    """

    normalized = _normalize_args(args)
    kept: list[str] = []
    truncated = False
    expired = threading.Event()
    # Bandit: commands originate from adapter definitions; we pass
    # argument lists directly without shell expansion.
    with subprocess.Popen(  # nosec B603 - controlled arguments, not user supplied
        normalized,
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        start_new_session=os.name == "posix",
    ) as process:

        def _expire() -> None:
            expired.set()
            _kill_process_tree(process)

        watchdog = threading.Timer(limits.timeout, _expire)
        watchdog.daemon = True
        watchdog.start()
        try:
            if process.stdout is not None:
                for line in process.stdout:
                    if len(kept) >= limits.max_output_lines:
                        truncated = True
                        break
                    kept.append(line.rstrip("\r\n"))
            if truncated:
                _kill_process_tree(process)
            returncode = process.wait()
        finally:
            watchdog.cancel()

    timed_out = expired.is_set() and not truncated
    if truncated:
        LOGGER.warning("Output truncated at %d lines to prevent memory exhaustion", limits.max_output_lines)
        kept.append(TRUNCATION_MARKER)
    if timed_out:
        LOGGER.warning("%s: Command timed out after %ds", normalized[0], limits.timeout)
        returncode = TIMEOUT_EXIT_CODE
    return CapturedOutput(
        lines=tuple(kept),
        returncode=returncode,
        timed_out=timed_out,
        truncated=truncated,
    )


def timeout_diagnosis(seconds: int, tool: str = "Test") -> str:
    """Return a human-readable explanation for a timed-out toolchain run."""

    return (
        f"{tool} execution timed out after {seconds} seconds. "
        "This may indicate infinite recursion or excessive computation "
        "(very large or complex computations, stuck evaluation or I/O). "
        f"Increase the timeout (e.g. --timeout {seconds * 2}) or review the tests for performance issues."
    )


__all__ = [
    "DEFAULT_MAX_OUTPUT_LINES",
    "DEFAULT_TIMEOUT_SECONDS",
    "TIMEOUT_EXIT_CODE",
    "TIMEOUT_WARNING_CEILING",
    "TRUNCATION_MARKER",
    "CapturedOutput",
    "CommandOptions",
    "ExecutionLimits",
    "SubprocessExecutionError",
    "TimedOutProcess",
    "cap_output_lines",
    "capture_stream",
    "run_command",
    "run_with_limits",
    "timeout_diagnosis",
]
