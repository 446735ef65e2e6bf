from __future__ import annotations

import logging
import os
from typing import Protocol, Sequence

from installer_core.launch import compile_apt_command

from ..integrations.command_runner import CommandRunner, run_command


LOGGER = logging.getLogger("agent_zero_installer.system_packages")

SYSTEM_PACKAGES = ("git", "python3-dev", "python3-venv", "build-essential", "curl")
_INSTALLED_STATUS = "install ok installed"


class PackageManager(Protocol):
    def is_installed(self, name: str) -> bool:
        ...

    def update(self) -> None:
        ...

    def install(self, names: Sequence[str]) -> None:
        ...


class AptPackageManager:
    def __init__(self, *, run: CommandRunner = run_command, as_root: bool | None = None) -> None:
        self._run = run
        self._as_root = (os.geteuid() == 0) if as_root is None else bool(as_root)

    def is_installed(self, name: str) -> bool:
        result = self._run(
            ["dpkg-query", "-W", "-f=${Status}", str(name)],
            capture=True,
            check=False,
        )
        if result.returncode != 0:
            return False
        return str(result.stdout or "").strip().endswith(_INSTALLED_STATUS)

    def update(self) -> None:
        self._run(compile_apt_command(["update", "-qq"], as_root=self._as_root))

    def install(self, names: Sequence[str]) -> None:
        if not names:
            return
        self._run(compile_apt_command(["install", "-y", *names], as_root=self._as_root))


class SystemPackagesService:
    def __init__(self, *, manager: PackageManager, packages: Sequence[str] = SYSTEM_PACKAGES) -> None:
        self._manager = manager
        self._packages = tuple(packages)

    def missing_packages(self) -> tuple[str, ...]:
        return tuple(name for name in self._packages if not self._manager.is_installed(name))

    def ensure_packages(self) -> tuple[str, ...]:
        missing = self.missing_packages()
        if not missing:
            LOGGER.debug("All system packages present: %s", ", ".join(self._packages))
            return ()
        LOGGER.info("Installing missing system packages: %s", " ".join(missing))
        self._manager.update()
        self._manager.install(missing)
        return missing
