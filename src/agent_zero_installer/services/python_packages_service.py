from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from installer_core.config import RuntimeConfig
from installer_core.launch import activated_env, compile_pip_command
from installer_core.paths import REQUIREMENTS_FILE_NAME, venv_python

from ..integrations.command_runner import CommandRunner, run_command


LOGGER = logging.getLogger("agent_zero_installer.python_packages")

BOOTSTRAP_PACKAGES = ("pip", "setuptools", "wheel")
BROWSER_AUTOMATION_PACKAGE = "playwright"
BROWSER_AUTOMATION_BROWSER = "chromium"


@dataclass(frozen=True)
class PackageInstallResult:
    requirements_installed: bool
    browser_installed: bool


class PythonPackagesService:
    def __init__(
        self,
        *,
        config: RuntimeConfig,
        run: CommandRunner = run_command,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._run = run
        self._env = activated_env(config.venv_dir, base_env)

    def install(self) -> PackageInstallResult:
        venv_dir = self._config.venv_dir
        self._run(
            compile_pip_command(venv_dir, ["install", "--quiet", "--upgrade", *BOOTSTRAP_PACKAGES]),
            capture=True,
            env=self._env,
        )

        requirements_file = self._config.install_dir / REQUIREMENTS_FILE_NAME
        requirements_installed = False
        if requirements_file.is_file():
            self._run(
                compile_pip_command(venv_dir, ["install", "--quiet", "-r", str(requirements_file)]),
                cwd=self._config.install_dir,
                capture=True,
                env=self._env,
            )
            requirements_installed = True
        else:
            LOGGER.warning(
                "No %s found in %s",
                REQUIREMENTS_FILE_NAME,
                self._config.install_dir,
                extra={"step": "packages", "operation": "requirements", "result": "missing"},
            )

        browser_installed = False
        if self.has_package(BROWSER_AUTOMATION_PACKAGE):
            LOGGER.info("Installing %s browser backend for %s", BROWSER_AUTOMATION_BROWSER, BROWSER_AUTOMATION_PACKAGE)
            self._run(
                [str(venv_python(venv_dir)), "-m", BROWSER_AUTOMATION_PACKAGE, "install", BROWSER_AUTOMATION_BROWSER],
                capture=True,
                env=self._env,
            )
            browser_installed = True
        return PackageInstallResult(
            requirements_installed=requirements_installed,
            browser_installed=browser_installed,
        )

    def has_package(self, name: str) -> bool:
        result = self._run(
            compile_pip_command(self._config.venv_dir, ["show", name]),
            capture=True,
            check=False,
            env=self._env,
        )
        return result.returncode == 0
