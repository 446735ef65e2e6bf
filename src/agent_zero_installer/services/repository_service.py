from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol

from installer_core.config import RuntimeConfig
from installer_core.errors import CommandError, RepositoryDivergedError
from installer_core.launch import compile_git_clone_command, compile_git_fast_forward_command

from ..integrations.command_runner import CommandRunner, run_command


LOGGER = logging.getLogger("agent_zero_installer.repository")

REPOSITORY_CLONED = "cloned"
REPOSITORY_UPDATED = "updated"
_NON_FAST_FORWARD_PATTERN = re.compile(
    r"not possible to fast-forward|divergent branches|would be overwritten by merge",
    re.IGNORECASE,
)


class RepositoryClient(Protocol):
    def is_checkout(self, path: Path) -> bool:
        ...

    def clone(self, url: str, path: Path) -> None:
        ...

    def fast_forward(self, path: Path) -> None:
        ...


class GitRepositoryClient:
    def __init__(self, *, run: CommandRunner = run_command) -> None:
        self._run = run

    def is_checkout(self, path: Path) -> bool:
        return (Path(path) / ".git").is_dir()

    def clone(self, url: str, path: Path) -> None:
        self._run(compile_git_clone_command(url, path), capture=True)

    def fast_forward(self, path: Path) -> None:
        try:
            self._run(compile_git_fast_forward_command(), cwd=Path(path), capture=True)
        except CommandError as exc:
            if not _NON_FAST_FORWARD_PATTERN.search(exc.output):
                raise
            raise RepositoryDivergedError(
                f"Unable to fast-forward {path}; resolve the local changes and re-run. {exc.output}".strip()
            ) from exc


class RepositoryService:
    def __init__(self, *, config: RuntimeConfig, client: RepositoryClient) -> None:
        self._config = config
        self._client = client

    def ensure_repository(self) -> str:
        install_dir = self._config.install_dir
        if self._client.is_checkout(install_dir):
            LOGGER.info("Updating existing checkout at %s", install_dir)
            self._client.fast_forward(install_dir)
            return REPOSITORY_UPDATED
        install_dir.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Cloning %s into %s", self._config.repository_url, install_dir)
        self._client.clone(self._config.repository_url, install_dir)
        return REPOSITORY_CLONED
