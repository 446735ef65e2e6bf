from __future__ import annotations

import re
from collections.abc import Callable


_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})
_VERSION_PATTERN = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


def parse_port(value: str | None, *, label: str, default: int, error_factory: Callable[[str], Exception]) -> int:
    candidate = str(value or "").strip()
    if not candidate:
        return int(default)
    if not candidate.isdigit():
        raise error_factory(f"{label} must be a port number, got {value!r}")
    port = int(candidate, 10)
    if port <= 0 or port > 65535:
        raise error_factory(f"{label} must be between 1 and 65535, got {port}")
    return port


def parse_bool_flag(value: str | None, *, label: str, error_factory: Callable[[str], Exception]) -> bool:
    candidate = str(value or "").strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    raise error_factory(f"{label} must be one of true/false/1/0/yes/no/on/off, got {value!r}")


def parse_version(text: str) -> tuple[int, ...] | None:
    match = _VERSION_PATTERN.search(str(text or ""))
    if match is None:
        return None
    return tuple(int(part) for part in match.groups() if part is not None)


def format_version(version: tuple[int, ...]) -> str:
    return ".".join(str(part) for part in version)


def command_output(stdout: str | None, stderr: str | None) -> str:
    return ((stdout or "") + (stderr or "")).strip()
