from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence


class TypedInstallerError(RuntimeError):
    """Base class for typed installer failures surfaced to the operator."""

    error_code = "INTERNAL_ERROR"
    failure_class = "internal"
    user_message = "An internal error occurred."

    def metadata(self) -> dict[str, str]:
        return {
            "error_code": self.error_code,
            "failure_class": self.failure_class,
            "user_message": self.user_message,
        }

    def payload(self, *, detail: str | None = None) -> dict[str, str]:
        payload = self.metadata()
        payload["detail"] = str(self) if detail is None else str(detail)
        return payload


def typed_error_metadata(exc: BaseException) -> dict[str, str] | None:
    if isinstance(exc, TypedInstallerError):
        return exc.metadata()
    return None


def typed_error_payload(exc: BaseException) -> dict[str, str] | None:
    if isinstance(exc, TypedInstallerError):
        return exc.payload()
    return None


class ConfigError(TypedInstallerError):
    """Environment configuration parsing or validation error."""

    error_code = "CONFIG_ERROR"
    failure_class = "configuration"
    user_message = "Configuration is invalid."


class SecretFailureReason(enum.Enum):
    MISSING = "missing"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class SecretIssue:
    name: str
    reason: SecretFailureReason


class MissingSecretsError(TypedInstallerError):
    """One or more required API keys are unset, empty or placeholders."""

    error_code = "MISSING_SECRETS"
    failure_class = "secrets"
    user_message = "Required API keys are missing."

    def __init__(self, issues: Sequence[SecretIssue]) -> None:
        self.issues = tuple(issues)
        super().__init__(
            f"Missing required API keys: {' '.join(self.names)}. Set them as environment variables."
        )

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(issue.name for issue in self.issues)


class EnvironmentCheckError(TypedInstallerError):
    """Host prerequisite check failed."""

    error_code = "ENVIRONMENT_CHECK_ERROR"
    failure_class = "environment"
    user_message = "Host environment does not meet the requirements."


class PortInUseError(EnvironmentCheckError):
    error_code = "PORT_IN_USE"
    user_message = "A configured port is already in use."

    def __init__(self, port: int, *, variable: str) -> None:
        self.port = int(port)
        self.variable = variable
        super().__init__(f"Port {self.port} in use. Change with {variable}=8080 agent-zero-install")


class InsufficientDiskSpaceError(EnvironmentCheckError):
    error_code = "INSUFFICIENT_DISK_SPACE"
    user_message = "Not enough free disk space."


class CommandError(TypedInstallerError):
    """External command exited non-zero."""

    error_code = "COMMAND_ERROR"
    failure_class = "command"
    user_message = "An external command failed."

    def __init__(self, cmd: Sequence[str], returncode: int, output: str = "") -> None:
        self.cmd = tuple(str(part) for part in cmd)
        self.returncode = int(returncode)
        self.output = str(output or "").strip()
        message = f"Command failed ({self.cmd[0] if self.cmd else '<unknown>'}) with exit code {self.returncode}"
        if self.output:
            message = f"{message}: {self.output}"
        super().__init__(message)


class RepositoryDivergedError(TypedInstallerError):
    """Local checkout cannot be fast-forwarded to upstream."""

    error_code = "REPOSITORY_DIVERGED"
    failure_class = "repository"
    user_message = "The local checkout has diverged from upstream."


class ServiceStartError(TypedInstallerError):
    error_code = "SERVICE_START_ERROR"
    failure_class = "service"
    user_message = "The service failed to start."

    def __init__(self, log_file: Path) -> None:
        self.log_file = Path(log_file)
        super().__init__(f"Service failed to start. Check logs: {self.log_file}")


class ServiceCrashedError(TypedInstallerError):
    error_code = "SERVICE_CRASHED"
    failure_class = "service"
    user_message = "The service exited while being health checked."

    def __init__(self, log_file: Path) -> None:
        self.log_file = Path(log_file)
        super().__init__(f"Service crashed. Check logs: {self.log_file}")


class HealthCheckTimeoutError(TypedInstallerError):
    error_code = "HEALTH_CHECK_TIMEOUT"
    failure_class = "health"
    user_message = "The service did not become healthy in time."


class ProvisioningError(TypedInstallerError):
    """Filesystem or process operation failed while provisioning."""

    error_code = "PROVISIONING_ERROR"
    failure_class = "provisioning"
    user_message = "A filesystem or process operation failed."

    def __init__(self, message: str, *, step: str = "") -> None:
        self.step = step
        super().__init__(message)
