from __future__ import annotations

import logging
import shutil

from installer_core.config import RuntimeConfig
from installer_core.launch import compile_venv_command
from installer_core.paths import venv_activate_script

from ..integrations.command_runner import CommandRunner, run_command


LOGGER = logging.getLogger("agent_zero_installer.virtualenv")


class VirtualenvService:
    def __init__(self, *, config: RuntimeConfig, run: CommandRunner = run_command) -> None:
        self._config = config
        self._run = run

    def exists(self) -> bool:
        return venv_activate_script(self._config.venv_dir).is_file()

    def ensure_virtualenv(self) -> bool:
        """Return True when a fresh environment was built, False when reused.

        ``force_recreate`` discards the existing directory, including any
        packages added to it by hand.
        """
        venv_dir = self._config.venv_dir
        if self.exists() and not self._config.force_recreate:
            LOGGER.info("Virtual environment exists at %s", venv_dir)
            return False
        if venv_dir.exists() or venv_dir.is_symlink():
            LOGGER.info("Removing existing virtual environment at %s", venv_dir)
            if venv_dir.is_dir() and not venv_dir.is_symlink():
                shutil.rmtree(venv_dir)
            else:
                venv_dir.unlink()
        self._run(compile_venv_command(self._config.python_executable, venv_dir), capture=True)
        return True
