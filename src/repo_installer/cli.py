"""
Command-line interface for the repository installer.
"""

import click
import json
import sys
from typing import Optional, Dict, Any
from pathlib import Path

import yaml

from . import __version__
from .config import ConfigManager, AppConfig
from .error_handling import InstallerError, PrerequisiteError
from .logging import setup_logging, LoggerConfig
from .orchestrator import InstallOrchestrator


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config', '-c',
    type=click.Path(exists=True, path_type=Path),
    help='Path to configuration file'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Let pip and git be verbose (-vv also shows debug logging)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int) -> None:
    """
    Install or update a tool made of several git repositories.

    By default the repositories are cloned and installed in development
    mode into a virtualenv, so that you can change them locally. Root
    installs default to plain pip installs from the remotes.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose


@cli.command()
@click.argument('install_dir', required=False, type=click.Path(path_type=Path))
@click.option(
    '--fork', '-g', 'fork_name',
    metavar='FORK_NAME',
    help='Add this fork of the upstream repository as a remote '
         '(taken from https://github.com/FORK_NAME/<repo>.git)'
)
@click.option(
    '--source/--no-source', '-s/-n',
    default=None,
    help='Clone source code locally, or just pip install from the remotes'
)
@click.option(
    '--virtualenv/--no-virtualenv', '-e/-r',
    default=None,
    help='Install into a virtualenv in INSTALL_DIR, or globally'
)
@click.pass_context
def install(
    ctx: click.Context,
    install_dir: Optional[Path],
    fork_name: Optional[str],
    source: Optional[bool],
    virtualenv: Optional[bool]
) -> None:
    """
    Install or update the managed repositories.

    Existing working copies are updated in place: uncommitted changes and
    the checked-out branch are put back after the install.

    Examples:

        # Clone into ~/insights and install into a virtualenv there
        repo-installer install ~/insights/

        # Also add your fork as a remote of the core repository
        repo-installer install -g alice ~/insights/

        # Global install straight from the remotes, no local source
        repo-installer install -n -r
    """
    verbose = ctx.obj.get('verbose', 0)

    try:
        config = load_config(ctx.obj.get('config_file'), {
            'install_dir': str(install_dir) if install_dir else None,
            'fork_name': fork_name,
            'install_source': source,
            'use_virtualenv': virtualenv
        })
        configure_logging(config, verbose)

        orchestrator = InstallOrchestrator(config, verbose=verbose > 0)
        results = orchestrator.run()
        display_results(results, verbose)

        if results.get('errors'):
            sys.exit(1)
        click.echo("Installer finished.")

    except PrerequisiteError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(2)
    except InstallerError as e:
        click.echo(f"Error: {e}", err=True)
        if verbose > 1:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@cli.command()
@click.option(
    '--format', '-f',
    type=click.Choice(['table', 'json', 'yaml'], case_sensitive=False),
    default='table',
    help='Output format for configuration display'
)
@click.pass_context
def config(ctx: click.Context, format: str) -> None:
    """
    Display current configuration settings.

    Shows the effective configuration including defaults, file settings,
    and environment variable overrides.
    """
    try:
        app_config = load_config(ctx.obj.get('config_file'))
    except InstallerError as e:
        click.echo(f"Error displaying configuration: {e}", err=True)
        sys.exit(1)

    config_dict = app_config.to_dict()
    if format == 'json':
        click.echo(json.dumps(config_dict, indent=2, default=str))
    elif format == 'yaml':
        click.echo(yaml.dump(config_dict, default_flow_style=False, sort_keys=False))
    else:
        display_config_table(app_config)


def load_config(config_file: Optional[Path], overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
    """Load configuration from file and environment, then apply CLI overrides."""
    manager = ConfigManager(config_file)
    if overrides:
        return manager.apply_overrides(overrides)
    return manager.get_config()


def configure_logging(config: AppConfig, verbose: int) -> None:
    """Set up logging from the configuration; -vv forces DEBUG."""
    setup_logging(LoggerConfig(
        level='DEBUG' if verbose > 1 else config.logging.level,
        file_path=config.logging.file,
        format_string=config.logging.format if verbose > 1 else '%(message)s',
        max_file_size=config.logging.max_file_size,
        backup_count=config.logging.backup_count,
        quiet_third_party=verbose < 3
    ))


def display_results(results: Dict[str, Any], verbose: int) -> None:
    """Display the per-repository outcome of an install run."""
    click.echo("\n" + "=" * 60)
    click.echo("INSTALL RESULTS")
    click.echo("=" * 60)

    synced = results.get('repositories_synced', [])
    failed = results.get('repositories_failed', [])
    errors = results.get('errors', [])

    click.echo(f"Repositories installed: {len(synced)}")
    for entry in synced:
        line = f"  - {entry['repository']}"
        if entry.get('local_path'):
            line += f" -> {entry['local_path']}"
        click.echo(line)
        if verbose > 0:
            if entry.get('cloned'):
                click.echo("      freshly cloned")
            if entry.get('branch_restored'):
                click.echo("      returned to your branch")
            if entry.get('changes_restored'):
                click.echo("      uncommitted changes restored")
            if entry.get('origin_updated'):
                click.echo("      origin URL updated")
        if entry.get('fork_remote'):
            state = "already configured" if entry.get('fork_already_configured') else "added"
            click.echo(f"      fork remote {state}: {entry['fork_remote']}")

    if failed:
        click.echo(f"\nRepositories failed: {len(failed)}")
        for error in errors:
            click.echo(f"  - {error}")

    if results.get('command_link'):
        click.echo(f"\nCommand linked at {results['command_link']}")

    click.echo("=" * 60)


def display_config_table(config: AppConfig) -> None:
    """Display configuration in table format."""
    click.echo("\nCurrent Configuration:")
    click.echo("-" * 50)

    for section_name, section in (("Install", config.install),
                                  ("Prerequisites", config.prerequisites),
                                  ("Logging", config.logging)):
        click.echo(f"\n[{section_name}]")
        for key, value in section.__dict__.items():
            click.echo(f"  {key}: {value}")

    click.echo("\n[Repositories]")
    for spec in config.repo_specs():
        extras = spec.extra_install_marker or ''
        click.echo(f"  {spec.local_dir}{extras}: {spec.remote_url} ({spec.target_branch})")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
