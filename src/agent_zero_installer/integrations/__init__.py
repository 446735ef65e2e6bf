from __future__ import annotations

from .command_runner import CommandRunner, command_exists, run_command

__all__ = ["CommandRunner", "command_exists", "run_command"]
