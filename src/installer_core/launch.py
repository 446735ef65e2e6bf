from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from installer_core.paths import SERVICE_ENTRYPOINT, venv_bin_dir, venv_python


@dataclass(frozen=True)
class ServiceLaunchPlan:
    python: Path
    entrypoint: str
    cwd: Path
    log_file: Path
    env: tuple[tuple[str, str], ...] = ()


def activated_env(venv_dir: Path, base_env: Mapping[str, str] | None = None) -> dict[str, str]:
    env = dict(os.environ if base_env is None else base_env)
    bin_dir = str(venv_bin_dir(venv_dir))
    current_path = env.get("PATH", "")
    env["PATH"] = f"{bin_dir}{os.pathsep}{current_path}" if current_path else bin_dir
    env["VIRTUAL_ENV"] = str(venv_dir)
    env.pop("PYTHONHOME", None)
    return env


def compile_service_plan(
    *,
    install_dir: Path,
    venv_dir: Path,
    log_file: Path,
    base_env: Mapping[str, str] | None = None,
) -> ServiceLaunchPlan:
    return ServiceLaunchPlan(
        python=venv_python(venv_dir),
        entrypoint=SERVICE_ENTRYPOINT,
        cwd=Path(install_dir),
        log_file=Path(log_file),
        env=tuple(sorted(activated_env(venv_dir, base_env).items())),
    )


def compile_service_command(plan: ServiceLaunchPlan) -> list[str]:
    return [str(plan.python), str(plan.entrypoint)]


def compile_apt_command(args: Sequence[str], *, as_root: bool) -> list[str]:
    cmd = [] if as_root else ["sudo"]
    cmd.append("apt-get")
    cmd.extend(str(arg) for arg in args)
    return cmd


def compile_pip_command(venv_dir: Path, args: Sequence[str]) -> list[str]:
    return [str(venv_python(venv_dir)), "-m", "pip", *(str(arg) for arg in args)]


def compile_venv_command(python_executable: str, venv_dir: Path) -> list[str]:
    return [str(python_executable), "-m", "venv", str(venv_dir)]


def compile_git_clone_command(url: str, destination: Path, *, depth: int = 1) -> list[str]:
    return ["git", "clone", "--depth", str(depth), str(url), str(destination)]


def compile_git_fast_forward_command() -> list[str]:
    return ["git", "pull", "--ff-only"]
