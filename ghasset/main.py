"""
ghasset — CLI entrypoint.

Usage:
    ghasset install jgm/pandoc
    ghasset install mikefarah/yq v4.45.1
    ghasset install dunglas/frankenphp v1.5.0 frankenphp-linux-x86_64-gnu
    python -m ghasset --help
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from ghasset import __version__
from ghasset.core.errors import AssetInstallError
from ghasset.core.observability.logging_config import resolve_level, setup_logging


class InstallerGroup(click.Group):
    """Click group whose usage errors exit 1, like every other input failure."""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as exc:
            exc.exit_code = 1
            raise

    def invoke(self, ctx):
        # Subcommand arguments are parsed in here
        try:
            return super().invoke(ctx)
        except click.UsageError as exc:
            exc.exit_code = 1
            raise


@click.group(cls=InstallerGroup)
@click.version_option(version=__version__, prog_name="ghasset")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to a YAML settings file (default: $GHASSET_CONFIG).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Install GitHub release binaries into an Upsun build cache and PATH."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(
            debug=debug,
            verbose=verbose,
            quiet=quiet,
            env_level=os.environ.get("GHASSET_LOG_LEVEL"),
        ),
        log_file=os.environ.get("GHASSET_LOG_FILE"),
        log_file_level=os.environ.get("GHASSET_LOG_FILE_LEVEL"),
        redact=[os.environ.get("GITHUB_TOKEN", "")],
    )


@cli.command()
@click.argument("repo", metavar="ORG/REPO")
@click.argument("version", required=False, default="")
@click.argument("asset_name", metavar="[ASSET_NAME]", required=False, default="")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    repo: str,
    version: str,
    asset_name: str,
    as_json: bool,
) -> None:
    """Install the binary named after REPO from one of its GitHub releases.

    VERSION defaults to the most recent release. ASSET_NAME defaults to
    the first Linux x86-64 archive of that release.

    Examples:

        ghasset install jgm/pandoc

        ghasset install mikefarah/yq v4.45.1

        ghasset install dunglas/frankenphp v1.5.0 frankenphp-linux-x86_64-gnu
    """
    from ghasset.core.config.loader import load_settings
    from ghasset.core.services.asset_install import install_asset, validate_inputs

    quiet = ctx.obj.get("quiet", False) or as_json

    def progress(message: str) -> None:
        if not quiet:
            click.echo(message)

    if not quiet:
        click.secho(f"Installing GitHub asset: {repo}", fg="green", bold=True)

    try:
        validate_inputs(repo, version, asset_name)
        settings = load_settings(ctx.obj.get("config_path"))
        result = install_asset(
            repo,
            version,
            asset_name,
            settings=settings,
            progress=progress,
        )
    except AssetInstallError as exc:
        if as_json:
            click.echo(json.dumps({"ok": False, "error": str(exc), "type": type(exc).__name__}, indent=2))
        else:
            click.secho(f"❌ {exc}", fg="red", bold=True, err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"ok": True, **result.to_dict()}, indent=2))
        return

    click.secho(f"✅ {result.tool} installation successful", fg="green", bold=True)
    click.echo(click.style("To use it, run: ", fg="green") + click.style(result.tool, fg="green", bold=True))


if __name__ == "__main__":
    cli()
