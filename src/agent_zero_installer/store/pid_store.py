from __future__ import annotations

import os
import signal
import subprocess
from pathlib import Path


def is_process_running(pid: int | None) -> bool:
    if pid is None:
        return False
    try:
        os.kill(pid, 0)
        return True
    except ProcessLookupError:
        return False
    except PermissionError:
        return False


class PidFileHandle:
    """Pid file for the detached service plus liveness and signal helpers.

    When the service was launched by this process the ``subprocess.Popen`` is
    attached, so that an exited child is reaped and reported as dead instead
    of lingering as a zombie that still answers ``kill -0``.
    """

    def __init__(self, *, pid_file: Path) -> None:
        self.pid_file = Path(pid_file)
        self._process: subprocess.Popen | None = None

    def attach(self, process: subprocess.Popen) -> None:
        self._process = process

    def exists(self) -> bool:
        return self.pid_file.is_file()

    def read_pid(self) -> int | None:
        try:
            raw = self.pid_file.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        if not raw.isdigit():
            return None
        pid = int(raw, 10)
        return pid if pid > 0 else None

    def write_pid(self, pid: int) -> None:
        self.pid_file.parent.mkdir(parents=True, exist_ok=True)
        self.pid_file.write_text(f"{int(pid)}\n", encoding="utf-8")

    def clear(self) -> None:
        self.pid_file.unlink(missing_ok=True)
        self._process = None

    def is_alive(self, pid: int | None = None) -> bool:
        target = self.read_pid() if pid is None else pid
        if target is None:
            return False
        process = self._process
        if process is not None and process.pid == target:
            return process.poll() is None
        return is_process_running(target)

    def send_signal(self, pid: int, sig: int) -> None:
        try:
            pgid = os.getpgid(pid)
        except (ProcessLookupError, OSError):
            pgid = 0
        try:
            if pgid and pgid == pid:
                os.killpg(pgid, sig)
            else:
                os.kill(pid, sig)
        except (ProcessLookupError, PermissionError, OSError):
            try:
                os.kill(pid, sig)
            except (ProcessLookupError, PermissionError, OSError):
                return

    def terminate(self, pid: int) -> None:
        self.send_signal(pid, signal.SIGTERM)

    def kill(self, pid: int) -> None:
        self.send_signal(pid, signal.SIGKILL)
        process = self._process
        if process is not None and process.pid == pid:
            try:
                process.wait(timeout=1)
            except subprocess.TimeoutExpired:
                pass
