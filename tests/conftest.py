from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Mapping, Sequence

import pytest

from installer_core.config import REQUIRED_SECRET_KEYS, RuntimeConfig
from installer_core.errors import CommandError


class FakeRunner:
    """Records commands and answers them from a list of prefix responders."""

    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []
        self._responses: list[tuple[tuple[str, ...], int, str]] = []

    def respond(self, prefix: Sequence[str], returncode: int = 0, stdout: str = "") -> None:
        self._responses.append((tuple(prefix), int(returncode), stdout))

    def commands(self) -> list[list[str]]:
        return [list(call["cmd"]) for call in self.calls]  # type: ignore[arg-type]

    def __call__(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        check: bool = True,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        argv = [str(part) for part in cmd]
        self.calls.append({"cmd": argv, "cwd": cwd, "capture": capture, "check": check, "env": env})
        returncode, stdout = 0, ""
        for prefix, code, out in reversed(self._responses):
            if tuple(argv[: len(prefix)]) == prefix:
                returncode, stdout = code, out
                break
        if check and returncode != 0:
            raise CommandError(argv, returncode, stdout)
        return subprocess.CompletedProcess(argv, returncode, stdout, "")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def runtime_config(tmp_path: Path) -> RuntimeConfig:
    return RuntimeConfig.for_install_dir(tmp_path / "agent-zero")


@pytest.fixture
def secrets_env() -> dict[str, str]:
    return {key: f"value-for-{key.lower()}" for key in REQUIRED_SECRET_KEYS}
