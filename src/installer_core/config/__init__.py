from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from installer_core.errors import (
    ConfigError,
    MissingSecretsError,
    SecretFailureReason,
    SecretIssue,
)
from installer_core.logging import LOG_LEVEL_CHOICES, normalize_log_level
from installer_core.paths import InstallPaths, resolve_install_dir
from installer_core.shared import parse_bool_flag, parse_port


REQUIRED_SECRET_KEYS = (
    "OPENAI_API_KEY",
    "GROQ_API_KEY",
    "MISTRAL_API_KEY",
    "OPENROUTER_API_KEY",
    "ANTHROPIC_API_KEY",
)
SECRET_PLACEHOLDER_MARKER = "DUMMY"

DEFAULT_GUI_PORT = 7860
DEFAULT_API_PORT = 5005
DEFAULT_BIND_ADDR = "127.0.0.1"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_PYTHON_EXECUTABLE = "python3"
REPOSITORY_URL = "https://github.com/CowboyHat-exe/A0_push.git"


@dataclass(frozen=True)
class RuntimeConfig:
    install_dir: Path
    workspace_dir: Path
    venv_dir: Path
    log_file: Path
    pid_file: Path
    env_file: Path
    gui_port: int = DEFAULT_GUI_PORT
    api_port: int = DEFAULT_API_PORT
    bind_addr: str = DEFAULT_BIND_ADDR
    force_recreate: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    repository_url: str = REPOSITORY_URL
    python_executable: str = DEFAULT_PYTHON_EXECUTABLE

    @classmethod
    def for_install_dir(cls, install_dir: Path, **overrides: Any) -> "RuntimeConfig":
        layout = InstallPaths.under(install_dir)
        return cls(
            install_dir=layout.install_dir,
            workspace_dir=layout.workspace_dir,
            venv_dir=layout.venv_dir,
            log_file=layout.log_file,
            pid_file=layout.pid_file,
            env_file=layout.env_file,
            **overrides,
        )

    @property
    def gui_url(self) -> str:
        return f"http://{self.bind_addr}:{self.gui_port}"

    def describe(self) -> dict[str, str]:
        return {
            "install_dir": str(self.install_dir),
            "venv_dir": str(self.venv_dir),
            "workspace_dir": str(self.workspace_dir),
            "gui_port": str(self.gui_port),
            "api_port": str(self.api_port),
            "bind_addr": self.bind_addr,
            "force_recreate": str(self.force_recreate).lower(),
        }


@dataclass(frozen=True)
class SecretBundle:
    values: Mapping[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"SecretBundle(keys={sorted(self.values)!r})"

    __str__ = __repr__

    def items(self) -> list[tuple[str, str]]:
        return [(key, self.values[key]) for key in REQUIRED_SECRET_KEYS if key in self.values]


def resolve_runtime_config(environ: Mapping[str, str], *, home: Path | None = None) -> RuntimeConfig:
    install_dir = resolve_install_dir(environ, home=home)
    gui_port = parse_port(
        environ.get("GUI_PORT"),
        label="GUI_PORT",
        default=DEFAULT_GUI_PORT,
        error_factory=ConfigError,
    )
    api_port = parse_port(
        environ.get("API_PORT"),
        label="API_PORT",
        default=DEFAULT_API_PORT,
        error_factory=ConfigError,
    )
    bind_addr = str(environ.get("BIND_ADDR") or "").strip() or DEFAULT_BIND_ADDR
    force_recreate = parse_bool_flag(
        environ.get("FORCE_RECREATE"),
        label="FORCE_RECREATE",
        error_factory=ConfigError,
    )
    raw_level = environ.get("AGENT_ZERO_LOG_LEVEL")
    log_level = normalize_log_level(raw_level or DEFAULT_LOG_LEVEL)
    if not log_level:
        raise ConfigError(f"AGENT_ZERO_LOG_LEVEL must be one of: {', '.join(LOG_LEVEL_CHOICES)}.")
    return RuntimeConfig.for_install_dir(
        install_dir,
        gui_port=gui_port,
        api_port=api_port,
        bind_addr=bind_addr,
        force_recreate=force_recreate,
        log_level=log_level,
    )


def resolve_secret_bundle(environ: Mapping[str, str]) -> SecretBundle:
    issues: list[SecretIssue] = []
    values: dict[str, str] = {}
    for key in REQUIRED_SECRET_KEYS:
        value = environ.get(key) or ""
        if not value:
            issues.append(SecretIssue(name=key, reason=SecretFailureReason.MISSING))
            continue
        if SECRET_PLACEHOLDER_MARKER in value:
            issues.append(SecretIssue(name=key, reason=SecretFailureReason.PLACEHOLDER))
            continue
        values[key] = value
    if issues:
        raise MissingSecretsError(issues)
    return SecretBundle(values=values)


__all__ = [
    "DEFAULT_API_PORT",
    "DEFAULT_BIND_ADDR",
    "DEFAULT_GUI_PORT",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PYTHON_EXECUTABLE",
    "REPOSITORY_URL",
    "REQUIRED_SECRET_KEYS",
    "RuntimeConfig",
    "SECRET_PLACEHOLDER_MARKER",
    "SecretBundle",
    "resolve_runtime_config",
    "resolve_secret_bundle",
]
