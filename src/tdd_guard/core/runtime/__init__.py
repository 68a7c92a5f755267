# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Runtime helpers for invoking external toolchains."""

from .process import (
    CapturedOutput,
    CommandOptions,
    ExecutionLimits,
    SubprocessExecutionError,
    cap_output_lines,
    capture_stream,
    run_command,
    run_with_limits,
    timeout_diagnosis,
)

__all__ = [
    "CapturedOutput",
    "CommandOptions",
    "ExecutionLimits",
    "SubprocessExecutionError",
    "cap_output_lines",
    "capture_stream",
    "run_command",
    "run_with_limits",
    "timeout_diagnosis",
]
