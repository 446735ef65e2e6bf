from __future__ import annotations

import os
import stat
from datetime import datetime
from pathlib import Path

import pytest

from agent_zero_installer.services import env_file_service
from agent_zero_installer.services.env_file_service import (
    EnvFileService,
    quote_env_value,
    render_env_file,
    write_private_file,
)
from installer_core.config import resolve_secret_bundle


FIXED_TIME = datetime(2026, 10, 18, 9, 30, 0)


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


def test_env_file_contains_secrets_and_derived_settings(runtime_config, secrets_env) -> None:
    secrets = resolve_secret_bundle(secrets_env)
    service = EnvFileService(config=runtime_config, secrets=secrets, clock=lambda: FIXED_TIME)

    path = service.write()

    assert path == runtime_config.install_dir / ".env"
    assert runtime_config.workspace_dir.is_dir()
    text = path.read_text(encoding="utf-8")
    assert text.startswith("# Agent Zero - Personal Configuration\n# Generated: Sun Oct 18 09:30:00 2026\n")
    assert "OPENAI_API_KEY='value-for-openai_api_key'\n" in text
    assert "ANTHROPIC_API_KEY='value-for-anthropic_api_key'\n" in text
    assert "A2A_PORT=5005\n" in text
    assert "GRADIO_SERVER_NAME=127.0.0.1\n" in text
    assert "GRADIO_SERVER_PORT=7860\n" in text
    assert f"WORKSPACE_DIR='{runtime_config.workspace_dir}'\n" in text
    assert _mode(path) == 0o600


def test_env_file_is_never_visible_with_broad_permissions(
    runtime_config, secrets_env, monkeypatch: pytest.MonkeyPatch
) -> None:
    observed: list[tuple[str, int]] = []
    real_replace = os.replace
    real_open = os.open

    def checking_open(path, flags, mode=0o777, *args, **kwargs):
        if flags & os.O_CREAT:
            observed.append(("open", mode))
        return real_open(path, flags, mode, *args, **kwargs)

    def checking_replace(src, dst):
        observed.append(("replace", stat.S_IMODE(os.stat(src).st_mode)))
        return real_replace(src, dst)

    monkeypatch.setattr(env_file_service.os, "open", checking_open)
    monkeypatch.setattr(env_file_service.os, "replace", checking_replace)
    previous_umask = os.umask(0)
    try:
        EnvFileService(
            config=runtime_config,
            secrets=resolve_secret_bundle(secrets_env),
            clock=lambda: FIXED_TIME,
        ).write()
    finally:
        os.umask(previous_umask)

    assert observed == [("open", 0o600), ("replace", 0o600)]
    assert _mode(runtime_config.env_file) == 0o600


def test_rewrite_replaces_whole_file_and_tightens_existing_permissions(runtime_config) -> None:
    target = runtime_config.env_file
    target.parent.mkdir(parents=True)
    target.write_text("STALE=1\n", encoding="utf-8")
    os.chmod(target, 0o644)

    write_private_file(target, "FRESH=1\n")

    assert target.read_text(encoding="utf-8") == "FRESH=1\n"
    assert _mode(target) == 0o600
    assert [p.name for p in target.parent.iterdir() if p.name.endswith(".tmp")] == []


def test_failed_write_leaves_previous_file_and_no_temp(runtime_config, monkeypatch: pytest.MonkeyPatch) -> None:
    target = runtime_config.env_file
    target.parent.mkdir(parents=True)
    target.write_text("KEEP=1\n", encoding="utf-8")

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(env_file_service.os, "replace", failing_replace)

    with pytest.raises(OSError, match="disk full"):
        write_private_file(target, "NEW=1\n")
    assert target.read_text(encoding="utf-8") == "KEEP=1\n"
    assert [p.name for p in target.parent.iterdir() if p.name.endswith(".tmp")] == []


def test_quote_env_value_escapes_quotes_and_backslashes() -> None:
    assert quote_env_value("plain") == "'plain'"
    assert quote_env_value("it's") == "'it\\'s'"
    assert quote_env_value("a\\b") == "'a\\\\b'"


def test_render_env_file_keeps_required_key_order(runtime_config, secrets_env) -> None:
    text = render_env_file(runtime_config, resolve_secret_bundle(secrets_env), generated_at=FIXED_TIME)
    keys = [line.split("=", 1)[0] for line in text.splitlines() if line.endswith("'") and "_API_KEY" in line]
    assert keys == [
        "OPENAI_API_KEY",
        "GROQ_API_KEY",
        "MISTRAL_API_KEY",
        "OPENROUTER_API_KEY",
        "ANTHROPIC_API_KEY",
    ]
