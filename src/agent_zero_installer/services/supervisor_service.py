from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path
from typing import Callable, Mapping

from installer_core.config import RuntimeConfig
from installer_core.errors import ServiceStartError
from installer_core.launch import ServiceLaunchPlan, compile_service_command, compile_service_plan

from ..store.pid_store import PidFileHandle


LOGGER = logging.getLogger("agent_zero_installer.supervisor")

STOP_GRACE_SECONDS = 2.0
START_SETTLE_SECONDS = 2.0
LOG_ROTATE_BYTES = 100 * 1024 * 1024


def rotate_log_if_needed(log_file: Path, *, max_bytes: int = LOG_ROTATE_BYTES) -> Path | None:
    try:
        size = log_file.stat().st_size
    except FileNotFoundError:
        return None
    if size <= max_bytes:
        return None
    rotated = log_file.with_name(f"{log_file.name}.old")
    log_file.replace(rotated)
    return rotated


def spawn_detached(plan: ServiceLaunchPlan) -> subprocess.Popen:
    plan.log_file.parent.mkdir(parents=True, exist_ok=True)
    with plan.log_file.open("a", encoding="utf-8", errors="ignore") as log_file:
        return subprocess.Popen(
            compile_service_command(plan),
            cwd=str(plan.cwd),
            env=dict(plan.env) if plan.env else None,
            stdin=subprocess.DEVNULL,
            stdout=log_file,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )


class SupervisorService:
    def __init__(
        self,
        *,
        config: RuntimeConfig,
        handle: PidFileHandle | None = None,
        spawn: Callable[[ServiceLaunchPlan], subprocess.Popen] = spawn_detached,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
        base_env: Mapping[str, str] | None = None,
        stop_grace_seconds: float = STOP_GRACE_SECONDS,
        start_settle_seconds: float = START_SETTLE_SECONDS,
        log_rotate_bytes: int = LOG_ROTATE_BYTES,
    ) -> None:
        self._config = config
        self.handle = handle or PidFileHandle(pid_file=config.pid_file)
        self._spawn = spawn
        self._sleep = sleep
        self._monotonic = monotonic
        self._base_env = base_env
        self._stop_grace_seconds = float(stop_grace_seconds)
        self._start_settle_seconds = float(start_settle_seconds)
        self._log_rotate_bytes = int(log_rotate_bytes)

    def running_pid(self) -> int | None:
        pid = self.handle.read_pid()
        if pid is not None and self.handle.is_alive(pid):
            return pid
        return None

    def stop_service(self) -> bool:
        """Stop the recorded service; a missing or stale pid file is not an error."""
        if not self.handle.exists():
            return False
        pid = self.handle.read_pid()
        stopped = False
        try:
            if pid is not None and self.handle.is_alive(pid):
                LOGGER.info("Stopping existing service (pid %s)", pid)
                self.handle.terminate(pid)
                deadline = self._monotonic() + self._stop_grace_seconds
                while self._monotonic() < deadline and self.handle.is_alive(pid):
                    self._sleep(0.1)
                if self.handle.is_alive(pid):
                    LOGGER.warning("Service did not exit after SIGTERM; sending SIGKILL (pid %s)", pid)
                    self.handle.kill(pid)
                stopped = True
        finally:
            self.handle.clear()
        return stopped

    def start_service(self) -> int:
        self.stop_service()

        rotated = rotate_log_if_needed(self._config.log_file, max_bytes=self._log_rotate_bytes)
        if rotated is not None:
            LOGGER.info("Rotated log file to %s", rotated)

        plan = compile_service_plan(
            install_dir=self._config.install_dir,
            venv_dir=self._config.venv_dir,
            log_file=self._config.log_file,
            base_env=self._base_env,
        )
        process = self._spawn(plan)
        self.handle.attach(process)
        self.handle.write_pid(process.pid)

        self._sleep(self._start_settle_seconds)
        if not self.handle.is_alive(process.pid):
            raise ServiceStartError(self._config.log_file)
        LOGGER.info("Service running (PID: %s)", process.pid)
        return process.pid
