from __future__ import annotations

import logging
import os
from typing import Mapping

import click

from installer_core.config import RuntimeConfig, resolve_runtime_config, resolve_secret_bundle
from installer_core.errors import TypedInstallerError
from installer_core.logging import LOG_LEVEL_CHOICES, configure_structured_logger

from .installer import InstallResult, build_installer
from .services import SupervisorService


LOGGER = logging.getLogger("agent_zero_installer")

_BANNER_WIDTH = 47


def _banner(*lines: str) -> str:
    border = "═" * _BANNER_WIDTH
    body = [f"║  {line:<{_BANNER_WIDTH - 2}}║" for line in lines]
    return "\n".join([f"╔{border}╗", *body, f"╚{border}╝"])


def _resolve_config(environ: Mapping[str, str], log_level: str | None) -> RuntimeConfig:
    try:
        config = resolve_runtime_config(environ)
    except TypedInstallerError as exc:
        configure_structured_logger(LOGGER, level=log_level or "info")
        _log_failure("config", exc)
        raise click.ClickException(str(exc)) from exc
    configure_structured_logger(LOGGER, level=log_level or config.log_level)
    LOGGER.debug("Resolved configuration: %s", config.describe(), extra={"step": "config", "result": "ok"})
    return config


def _log_failure(step: str, exc: TypedInstallerError) -> None:
    LOGGER.error(
        "%s",
        exc,
        extra={"step": step, "operation": "run", "result": "failed", "error_class": exc.failure_class},
    )


def _completion_summary(config: RuntimeConfig, result: InstallResult) -> str:
    return "\n".join(
        [
            "",
            _banner("✓ INSTALLATION COMPLETE"),
            "",
            f"Browser: http://localhost:{config.gui_port}",
            f"Location: {config.install_dir}",
            f"Logs: tail -f {config.log_file}",
            f"Stop: agent-zero-install stop  (pid {result.pid})",
            "",
        ]
    )


@click.group(invoke_without_command=True, help="Install, update and start Agent Zero on this machine.")
@click.option(
    "--log-level",
    default=None,
    show_default="AGENT_ZERO_LOG_LEVEL or info",
    type=click.Choice(LOG_LEVEL_CHOICES, case_sensitive=False),
    help="Installer logging verbosity.",
)
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level.lower() if log_level else None
    if ctx.invoked_subcommand is not None:
        return

    environ = dict(os.environ)
    click.echo(_banner("Agent Zero Installer", "Linux Mint / Ubuntu - Personal Use"))
    click.echo()

    try:
        secrets = resolve_secret_bundle(environ)
    except TypedInstallerError as exc:
        configure_structured_logger(LOGGER, level=ctx.obj["log_level"] or "info")
        _log_failure("secrets", exc)
        raise click.ClickException(str(exc)) from exc
    config = _resolve_config(environ, ctx.obj["log_level"])

    installer = build_installer(config, secrets, environ=environ)
    try:
        result = installer.run()
    except TypedInstallerError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(_completion_summary(config, result))


@main.command(help="Stop the running Agent Zero service.")
@click.pass_context
def stop(ctx: click.Context) -> None:
    config = _resolve_config(dict(os.environ), ctx.obj.get("log_level"))
    supervisor = SupervisorService(config=config)
    try:
        stopped = supervisor.stop_service()
    except OSError as exc:
        raise click.ClickException(f"Unable to stop Agent Zero: {exc}") from exc
    if stopped:
        click.echo("Agent Zero stopped.")
    else:
        click.echo("Agent Zero is not running.")


@main.command(help="Report whether the Agent Zero service is running.")
@click.pass_context
def status(ctx: click.Context) -> None:
    config = _resolve_config(dict(os.environ), ctx.obj.get("log_level"))
    supervisor = SupervisorService(config=config)
    pid = supervisor.running_pid()
    if pid is None:
        click.echo("Agent Zero is not running.")
        ctx.exit(1)
    click.echo(f"Agent Zero is running (PID: {pid}) at {config.gui_url}")


if __name__ == "__main__":
    main()
