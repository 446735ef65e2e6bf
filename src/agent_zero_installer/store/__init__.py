from __future__ import annotations

from .pid_store import PidFileHandle, is_process_running

__all__ = ["PidFileHandle", "is_process_running"]
