from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping


ENV_FILE_NAME = ".env"
LOG_FILE_NAME = "agent-zero.log"
PID_FILE_NAME = "agent-zero.pid"
REQUIREMENTS_FILE_NAME = "requirements.txt"
SERVICE_ENTRYPOINT = "run_ui.py"


@dataclass(frozen=True)
class InstallPaths:
    install_dir: Path
    workspace_dir: Path
    venv_dir: Path
    log_file: Path
    pid_file: Path
    env_file: Path

    @classmethod
    def under(cls, install_dir: Path) -> "InstallPaths":
        root = Path(install_dir)
        return cls(
            install_dir=root,
            workspace_dir=root / "workspace",
            venv_dir=root / "venv",
            log_file=root / LOG_FILE_NAME,
            pid_file=root / PID_FILE_NAME,
            env_file=root / ENV_FILE_NAME,
        )


def default_install_dir(home: Path | None = None) -> Path:
    resolved_home = home or Path.home()
    return resolved_home / "agent-zero"


def resolve_home(environ: Mapping[str, Any], home: Path | None = None) -> Path:
    if home is not None:
        return Path(home)
    configured = str(environ.get("HOME") or "").strip()
    if configured:
        return Path(configured)
    return Path.home()


def resolve_install_dir(environ: Mapping[str, Any], *, home: Path | None = None) -> Path:
    resolved_home = resolve_home(environ, home)
    configured = str(environ.get("AGENT_ZERO_DIR") or "").strip()
    if not configured:
        return default_install_dir(resolved_home)
    if configured == "~":
        return resolved_home
    if configured.startswith("~/"):
        return resolved_home / configured[2:]
    return Path(configured)


def venv_bin_dir(venv_dir: Path) -> Path:
    return Path(venv_dir) / "bin"


def venv_python(venv_dir: Path) -> Path:
    return venv_bin_dir(venv_dir) / "python"


def venv_activate_script(venv_dir: Path) -> Path:
    return venv_bin_dir(venv_dir) / "activate"
