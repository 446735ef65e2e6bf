from __future__ import annotations

import errno
import logging
import re
import shutil
import socket
from pathlib import Path
from typing import Callable

from installer_core.config import RuntimeConfig
from installer_core.errors import (
    CommandError,
    EnvironmentCheckError,
    InsufficientDiskSpaceError,
    PortInUseError,
)
from installer_core.shared import format_version, parse_version

from ..integrations.command_runner import CommandRunner, command_exists, run_command


LOGGER = logging.getLogger("agent_zero_installer.environment")

MIN_PYTHON_VERSION = (3, 10)
MIN_FREE_DISK_MIB = 2048
OS_RELEASE_PATH = Path("/etc/os-release")
_SUPPORTED_OS_PATTERN = re.compile(r"(ubuntu|mint)", re.IGNORECASE)


def _ipv6_port_available(port: int) -> bool:
    """Only EADDRINUSE counts; hosts without usable IPv6 report the port free."""
    try:
        sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)
    except OSError:
        return True
    with sock:
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
            sock.bind(("::", int(port)))
        except OSError as exc:
            return exc.errno != errno.EADDRINUSE
    return True


def is_port_available(port: int) -> bool:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", int(port)))
    except OSError:
        return False
    if socket.has_ipv6:
        return _ipv6_port_available(port)
    return True


def free_disk_mib(path: Path) -> int:
    return int(shutil.disk_usage(str(path)).free // (1024 * 1024))


class EnvironmentService:
    def __init__(
        self,
        *,
        config: RuntimeConfig,
        home: Path,
        run: CommandRunner = run_command,
        which: Callable[[str], bool] = command_exists,
        port_available: Callable[[int], bool] = is_port_available,
        disk_free_mib: Callable[[Path], int] = free_disk_mib,
        os_release_path: Path = OS_RELEASE_PATH,
    ) -> None:
        self._config = config
        self._home = Path(home)
        self._run = run
        self._which = which
        self._port_available = port_available
        self._disk_free_mib = disk_free_mib
        self._os_release_path = Path(os_release_path)

    def validate(self) -> None:
        self.check_python()
        self.check_os_family()
        self.check_ports()
        self.check_disk_space()

    def check_python(self) -> tuple[int, ...]:
        python = self._config.python_executable
        required = format_version(MIN_PYTHON_VERSION)
        if not self._which(python):
            raise EnvironmentCheckError(f"Install python{required}+: sudo apt install python3 python3-venv")
        try:
            result = self._run([python, "--version"], capture=True)
        except CommandError as exc:
            raise EnvironmentCheckError(f"Unable to determine {python} version: {exc}") from exc
        version = parse_version((result.stdout or "") + (result.stderr or ""))
        if version is None:
            raise EnvironmentCheckError(f"Unable to determine {python} version.")
        if version[:2] < MIN_PYTHON_VERSION:
            raise EnvironmentCheckError(
                f"Python {required}+ required, found {format_version(version)}"
            )
        return version

    def check_os_family(self) -> bool:
        try:
            text = self._os_release_path.read_text(encoding="utf-8", errors="ignore")
        except FileNotFoundError:
            return True
        if _SUPPORTED_OS_PATTERN.search(text):
            return True
        LOGGER.warning(
            "Not Ubuntu/Mint - package install may fail",
            extra={"step": "validate", "operation": "os_family", "result": "unrecognized"},
        )
        return False

    def check_ports(self) -> None:
        for variable, port in (("GUI_PORT", self._config.gui_port), ("API_PORT", self._config.api_port)):
            if not self._port_available(port):
                raise PortInUseError(port, variable=variable)

    def check_disk_space(self) -> int:
        free_mib = self._disk_free_mib(self._home)
        if free_mib < MIN_FREE_DISK_MIB:
            raise InsufficientDiskSpaceError(
                f"Need {MIN_FREE_DISK_MIB // 1024}GB free disk space, {free_mib}MB available on {self._home}"
            )
        return free_mib
