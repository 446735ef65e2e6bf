from __future__ import annotations

from .config import (
    REQUIRED_SECRET_KEYS,
    RuntimeConfig,
    SecretBundle,
    resolve_runtime_config,
    resolve_secret_bundle,
)
from .errors import (
    CommandError,
    ConfigError,
    EnvironmentCheckError,
    HealthCheckTimeoutError,
    InsufficientDiskSpaceError,
    MissingSecretsError,
    PortInUseError,
    ProvisioningError,
    RepositoryDivergedError,
    SecretFailureReason,
    SecretIssue,
    ServiceCrashedError,
    ServiceStartError,
    TypedInstallerError,
)
from .paths import InstallPaths, default_install_dir, resolve_install_dir

__all__ = [
    "CommandError",
    "ConfigError",
    "EnvironmentCheckError",
    "HealthCheckTimeoutError",
    "InstallPaths",
    "InsufficientDiskSpaceError",
    "MissingSecretsError",
    "PortInUseError",
    "ProvisioningError",
    "REQUIRED_SECRET_KEYS",
    "RepositoryDivergedError",
    "RuntimeConfig",
    "SecretBundle",
    "SecretFailureReason",
    "SecretIssue",
    "ServiceCrashedError",
    "ServiceStartError",
    "TypedInstallerError",
    "default_install_dir",
    "resolve_install_dir",
    "resolve_runtime_config",
    "resolve_secret_bundle",
]
