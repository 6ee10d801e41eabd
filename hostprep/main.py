"""
hostprep — CLI entrypoint.

Usage:
    hostprep --help
    hostprep singbox                 # install or update
    hostprep singbox status --json
    hostprep zsh install
    hostprep fish uninstall
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

import click

from hostprep import __version__
from hostprep.core.errors import HostprepError
from hostprep.core.models.lifecycle import (
    LifecycleAction,
    LifecycleResult,
    ShellAction,
    ShellResult,
    StatusReport,
)
from hostprep.core.models.platform import HostPlatform
from hostprep.core.models.settings import InstallerSettings
from hostprep.core.observability.logging_config import setup_logging

logger = logging.getLogger(__name__)

_SINGBOX_ACTIONS = [a.value for a in LifecycleAction] + ["status"]
_SHELL_ACTIONS = [a.value for a in ShellAction]


@click.group()
@click.version_option(version=__version__, prog_name="hostprep")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to hostprep.yml (default: auto-detect).",
)
@click.option(
    "--github-proxy",
    default=None,
    help='GitHub download mirror prefix, or "auto" to pick one by country.',
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    github_proxy: str | None,
) -> None:
    """hostprep — provision sing-box and shell environments on a host."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["overrides"] = {"github_proxy": github_proxy}

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("HOSTPREP_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("HOSTPREP_LOG_FILE"),
        log_file_level=os.environ.get("HOSTPREP_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


# ── Wiring ──────────────────────────────────────────────────────


def _load(ctx: click.Context) -> tuple[InstallerSettings, HostPlatform]:
    from hostprep.core.config.loader import load_settings
    from hostprep.core.services.provision.detection.platform import probe_platform

    settings = load_settings(ctx.obj.get("config_path"), overrides=ctx.obj.get("overrides"))
    host = probe_platform(settings.os_release_path)
    return settings, host


def _collaborators(settings: InstallerSettings, host: HostPlatform) -> dict:
    """Real resolver, deployer and package installer for ``settings``."""
    from hostprep.core.services.provision.detection.network import detect_github_proxy
    from hostprep.core.services.provision.execution.download import BinaryDeployer
    from hostprep.core.services.provision.execution.system_deps import PackageInstaller
    from hostprep.core.services.provision.resolver.release_resolver import ReleaseResolver

    proxy = settings.github_proxy
    if proxy == "auto":
        proxy = detect_github_proxy()

    return {
        "resolver": ReleaseResolver(
            api_base=settings.api_base, proxy=proxy, timeout=settings.http_timeout,
        ),
        "deployer": BinaryDeployer(timeout=settings.http_timeout),
        "dependency_installer": PackageInstaller(host.os_family, sudo=not host.is_root),
    }


def _fail(exc: Exception) -> None:
    logger.debug("Fatal error", exc_info=exc)
    click.secho(f"❌ {exc}", fg="red", err=True)
    sys.exit(1)


def _print_warnings(warnings: list[str]) -> None:
    for warn in warnings:
        click.secho(f"⚠️  {warn}", fg="yellow", err=True)


# ── sing-box ────────────────────────────────────────────────────


@cli.command()
@click.argument("action", type=click.Choice(_SINGBOX_ACTIONS), default="auto")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def singbox(ctx: click.Context, action: str, as_json: bool) -> None:
    """Install, update, uninstall or inspect sing-box.

    ACTION defaults to ``auto``: install when absent, update otherwise.
    """
    from hostprep.core.services.provision.execution.service_supervisor import ServiceSupervisor
    from hostprep.core.services.provision.orchestration.singbox_lifecycle import SingBoxLifecycle

    try:
        settings, host = _load(ctx)
        supervisor = ServiceSupervisor(settings.service_name, settings.service_file)
        lifecycle = SingBoxLifecycle(
            settings, host, supervisor=supervisor, **_collaborators(settings, host),
        )

        if action == "status":
            report = lifecycle.status()
            if as_json:
                click.echo(json.dumps(report.to_dict(), indent=2))
                return
            _render_status(report)
            return

        result = lifecycle.run(action)
    except (HostprepError, OSError) as exc:
        _fail(exc)
        return

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return
    _render_lifecycle(result, quiet=ctx.obj.get("quiet", False))


def _render_lifecycle(result: LifecycleResult, *, quiet: bool) -> None:
    _print_warnings(result.warnings)

    if result.already_installed:
        click.secho(f"⚠️  {result.message}", fg="yellow")
        return

    click.secho(f"✅ {result.message}", fg="green", bold=True)
    if quiet:
        return

    if result.action != LifecycleAction.UNINSTALL:
        for path in result.replaced:
            click.echo(f"   • {path}")
    for path in result.removed:
        click.echo(f"   • removed {path}")

    if result.share_line:
        click.echo()
        click.secho("   Client configuration:", fg="white", bold=True)
        click.echo(f"   {result.share_line}")
    click.echo()


def _render_status(report: StatusReport) -> None:
    color = {"running": "green", "installed": "yellow", "absent": "white"}.get(report.state, "white")
    click.secho("\n📦 sing-box", fg="cyan", bold=True)
    click.echo("   State:   ", nl=False)
    click.secho(str(report.state), fg=color)
    click.echo(f"   Version: {report.version or '-'}")
    click.echo(f"   Binary:  {report.canonical_binary}{'' if report.canonical_present else ' (missing)'}")
    for copy in report.discovered_copies:
        if copy != report.canonical_binary:
            click.echo(f"            {copy}")
    click.echo(
        f"   Service: active={'yes' if report.service_active else 'no'} "
        f"enabled={'yes' if report.service_enabled else 'no'} "
        f"unit={'yes' if report.service_file_present else 'no'}"
    )
    if report.config_file:
        click.echo(f"   Config:  {report.config_file} (port {report.listen_port or '?'})")
    click.echo()


# ── Shell environments ──────────────────────────────────────────


def _run_shell(ctx: click.Context, shell: str, action: str) -> None:
    from hostprep.core.services.provision.orchestration.fish_env import FishProvisioner
    from hostprep.core.services.provision.orchestration.zsh_env import ZshProvisioner

    provisioner_cls = ZshProvisioner if shell == "zsh" else FishProvisioner
    try:
        settings, host = _load(ctx)
        provisioner = provisioner_cls(settings, host, **_collaborators(settings, host))
        result = provisioner.run(action)
    except (HostprepError, OSError) as exc:
        _fail(exc)
        return

    _render_shell(result, quiet=ctx.obj.get("quiet", False))


def _render_shell(result: ShellResult, *, quiet: bool) -> None:
    _print_warnings(result.warnings)
    click.secho(f"✅ {result.message}", fg="green", bold=True)
    if quiet:
        return
    for name, version in result.tools.items():
        click.echo(f"   • {name} {version}")
    for path in result.changed_files:
        click.echo(f"   • updated {path}")
    for path in result.removed:
        click.echo(f"   • removed {path}")
    click.echo()


@cli.command()
@click.argument("action", type=click.Choice(_SHELL_ACTIONS), default="install")
@click.pass_context
def zsh(ctx: click.Context, action: str) -> None:
    """Install or remove Zsh + Oh-My-Zsh + Starship + zoxide."""
    _run_shell(ctx, "zsh", action)


@cli.command()
@click.argument("action", type=click.Choice(_SHELL_ACTIONS), default="install")
@click.pass_context
def fish(ctx: click.Context, action: str) -> None:
    """Install or remove Fish + Starship (root only)."""
    _run_shell(ctx, "fish", action)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
