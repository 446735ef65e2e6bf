from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from installer_core.config import RuntimeConfig, SecretBundle
from installer_core.errors import ProvisioningError, TypedInstallerError
from installer_core.paths import resolve_home

from .services import (
    AptPackageManager,
    EnvFileService,
    EnvironmentService,
    GitRepositoryClient,
    HealthService,
    PythonPackagesService,
    RepositoryService,
    SupervisorService,
    SystemPackagesService,
    VirtualenvService,
)


LOGGER = logging.getLogger("agent_zero_installer.installer")


@dataclass(frozen=True)
class InstallResult:
    installed_packages: tuple[str, ...]
    repository_action: str
    virtualenv_created: bool
    env_file: Path
    pid: int
    health_attempts: int


@dataclass
class Installer:
    config: RuntimeConfig
    environment: EnvironmentService
    system_packages: SystemPackagesService
    repository: RepositoryService
    virtualenv: VirtualenvService
    python_packages: PythonPackagesService
    env_file: EnvFileService
    supervisor: SupervisorService
    health: HealthService

    def run(self) -> InstallResult:
        self._step("validate", "Validating environment", self.environment.validate)
        installed = self._step("system_packages", "Installing system packages (if missing)", self.system_packages.ensure_packages)
        repository_action = self._step("repository", "Setting up Agent Zero repository", self.repository.ensure_repository)
        created = self._step("virtualenv", "Creating Python virtual environment", self.virtualenv.ensure_virtualenv)
        self._step("python_packages", "Installing Python packages", self.python_packages.install)
        env_file = self._step("env_file", "Configuring environment", self.env_file.write)
        pid = self._step("start", "Starting Agent Zero", self.supervisor.start_service)
        attempts = self._step("health", "Verifying service health", self.health.wait_until_healthy)
        return InstallResult(
            installed_packages=tuple(installed),
            repository_action=str(repository_action),
            virtualenv_created=bool(created),
            env_file=env_file,
            pid=int(pid),
            health_attempts=int(attempts),
        )

    def _step(self, step: str, description: str, action: Callable[[], Any]) -> Any:
        LOGGER.info("%s...", description, extra={"step": step, "operation": "run", "result": "started"})
        start_time = time.monotonic()
        try:
            outcome = action()
        except TypedInstallerError as exc:
            _log_step_failure(step, description, exc, start_time)
            raise
        except OSError as exc:
            error = ProvisioningError(str(exc), step=step)
            _log_step_failure(step, description, error, start_time)
            raise error from exc
        LOGGER.info(
            "%s: done",
            description,
            extra={
                "step": step,
                "operation": "run",
                "result": "ok",
                "duration_ms": int((time.monotonic() - start_time) * 1000),
            },
        )
        return outcome


def _log_step_failure(step: str, description: str, exc: TypedInstallerError, start_time: float) -> None:
    LOGGER.error(
        "%s failed: %s",
        description,
        exc,
        extra={
            "step": step,
            "operation": "run",
            "result": "failed",
            "duration_ms": int((time.monotonic() - start_time) * 1000),
            "error_class": exc.failure_class,
        },
    )


def build_installer(
    config: RuntimeConfig,
    secrets: SecretBundle,
    *,
    environ: Mapping[str, str],
    home: Path | None = None,
) -> Installer:
    supervisor = SupervisorService(config=config, base_env=environ)
    return Installer(
        config=config,
        environment=EnvironmentService(config=config, home=resolve_home(environ, home)),
        system_packages=SystemPackagesService(manager=AptPackageManager()),
        repository=RepositoryService(config=config, client=GitRepositoryClient()),
        virtualenv=VirtualenvService(config=config),
        python_packages=PythonPackagesService(config=config, base_env=environ),
        env_file=EnvFileService(config=config, secrets=secrets),
        supervisor=supervisor,
        health=HealthService(config=config, handle=supervisor.handle),
    )
