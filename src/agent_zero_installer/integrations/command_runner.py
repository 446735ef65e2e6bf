from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import Mapping, Protocol, Sequence

from installer_core.errors import CommandError
from installer_core.shared import command_output


LOGGER = logging.getLogger("agent_zero_installer.command")


class CommandRunner(Protocol):
    def __call__(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        check: bool = True,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        ...


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path | None = None,
    capture: bool = False,
    check: bool = True,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    resolved_env: dict[str, str] | None = None
    if env:
        resolved_env = dict(os.environ)
        for key, value in env.items():
            resolved_env[str(key)] = str(value)
    argv = [str(part) for part in cmd]
    start_time = time.monotonic()
    try:
        result = subprocess.run(
            argv,
            cwd=str(cwd) if cwd else None,
            check=False,
            text=True,
            capture_output=capture,
            env=resolved_env,
        )
    except OSError as exc:
        raise CommandError(argv, 127, str(exc)) from exc
    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    LOGGER.debug(
        "Command completed: command=%s exit_code=%s elapsed_ms=%s",
        argv[0] if argv else "<unknown>",
        result.returncode,
        elapsed_ms,
    )
    if check and result.returncode != 0:
        raise CommandError(argv, result.returncode, command_output(result.stdout, result.stderr))
    return result


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None
