from __future__ import annotations

from .env_file_service import EnvFileService
from .environment_service import EnvironmentService
from .health_service import HealthService
from .python_packages_service import PythonPackagesService
from .repository_service import GitRepositoryClient, RepositoryService
from .supervisor_service import SupervisorService
from .system_packages_service import AptPackageManager, SystemPackagesService
from .virtualenv_service import VirtualenvService

__all__ = [
    "AptPackageManager",
    "EnvFileService",
    "EnvironmentService",
    "GitRepositoryClient",
    "HealthService",
    "PythonPackagesService",
    "RepositoryService",
    "SupervisorService",
    "SystemPackagesService",
    "VirtualenvService",
]
