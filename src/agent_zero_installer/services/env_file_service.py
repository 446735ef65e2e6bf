from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable

from installer_core.config import RuntimeConfig, SecretBundle


LOGGER = logging.getLogger("agent_zero_installer.env_file")

PRIVATE_FILE_MODE = 0o600


def quote_env_value(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def render_env_file(config: RuntimeConfig, secrets: SecretBundle, *, generated_at: datetime) -> str:
    lines = [
        "# Agent Zero - Personal Configuration",
        f"# Generated: {generated_at.strftime('%a %b %d %H:%M:%S %Y')}",
        "",
        "# API Keys",
    ]
    lines.extend(f"{key}={quote_env_value(value)}" for key, value in secrets.items())
    lines.extend(
        [
            "",
            "# Server",
            f"A2A_PORT={config.api_port}",
            f"GRADIO_SERVER_NAME={config.bind_addr}",
            f"GRADIO_SERVER_PORT={config.gui_port}",
            "",
            "# Workspace",
            f"WORKSPACE_DIR={quote_env_value(str(config.workspace_dir))}",
        ]
    )
    return "\n".join(lines) + "\n"


def write_private_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.parent / f".{path.name}.{uuid.uuid4().hex}.tmp"
    fd = os.open(str(tmp_path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, PRIVATE_FILE_MODE)
    try:
        os.fchmod(fd, PRIVATE_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(content)
            fp.flush()
            os.fsync(fp.fileno())
        os.replace(tmp_path, path)
        os.chmod(path, PRIVATE_FILE_MODE)
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


class EnvFileService:
    def __init__(
        self,
        *,
        config: RuntimeConfig,
        secrets: SecretBundle,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config
        self._secrets = secrets
        self._clock = clock

    def write(self) -> Path:
        self._config.workspace_dir.mkdir(parents=True, exist_ok=True)
        content = render_env_file(self._config, self._secrets, generated_at=self._clock())
        write_private_file(self._config.env_file, content)
        LOGGER.info("Wrote %s (mode %o)", self._config.env_file, PRIVATE_FILE_MODE)
        return self._config.env_file
