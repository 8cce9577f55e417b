"""Main CLI entry point for repo-sync."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config.config import Config
from ..utils.logging import setup_logging
from ..workflow.engine import MigrationEngine
from ..workflow.workflow import WorkflowMode

console = Console()

DEFAULT_CONFIG_PATHS = ['repo-sync.yaml', 'repo-sync.yml', '.repo-sync.yaml']


@click.group()
@click.version_option(version=__version__, prog_name='repo-sync')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """repo-sync - Migrate changes from an origin repository into a destination repository."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    # Setup basic logging first (will be enhanced later with config)
    setup_logging('DEBUG' if verbose else 'INFO')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='repo-sync.yaml',
    help='Output configuration file path',
)
def init(output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]repo-sync[/bold green]\nInitializing configuration...',
            border_style='green',
        )
    )

    try:
        Config.create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your repository details[/yellow]'
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.argument('source_ref', required=False)
@click.option(
    '--workdir',
    '-w',
    type=click.Path(file_okay=False),
    help='Work tree directory. Its existing contents are deleted before each checkout '
    '(default: a temporary directory)',
)
@click.option(
    '--previous-ref',
    help='Origin reference to resume ITERATIVE mode from',
)
@click.option(
    '--mode',
    type=click.Choice([m.value for m in WorkflowMode], case_sensitive=False),
    help='Override the configured workflow mode',
)
@click.pass_context
def migrate(
    ctx: click.Context,
    source_ref: Optional[str],
    workdir: Optional[str],
    previous_ref: Optional[str],
    mode: Optional[str],
) -> None:
    """Migrate origin changes up to SOURCE_REF (default: origin head)."""
    console.print(
        Panel.fit(
            '[bold blue]repo-sync[/bold blue]\nStarting migration process...',
            border_style='blue',
        )
    )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        engine = MigrationEngine(
            config,
            previous_ref=previous_ref,
            mode=WorkflowMode(mode.upper()) if mode else None,
        )
        migrated_ref = engine.migrate(workdir=workdir, source_ref=source_ref)

        console.print(f'[green]✓[/green] Migrated up to {migrated_ref}')

    except Exception as e:
        console.print(f'[red]✗[/red] Migration failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the workflow configuration."""
    console.print(
        Panel.fit(
            '[bold magenta]repo-sync[/bold magenta]\nWorkflow Status',
            border_style='magenta',
        )
    )

    try:
        config = _load_config(ctx)

        table = Table(title='Workflow Configuration')
        table.add_column('Setting', style='cyan')
        table.add_column('Value', style='green')

        table.add_row('Workflow', config.workflow.name)
        table.add_row('Mode', config.workflow.mode.value)
        table.add_row('Origin URL', config.origin.url)
        table.add_row('Origin Ref', config.origin.ref)
        table.add_row('Destination URL', config.destination.url)
        table.add_row(
            'Destination Branch', f'{config.destination.fetch} -> {config.destination.push}'
        )
        table.add_row(
            'Excluded Paths', ', '.join(config.workflow.excluded_origin_paths) or '-'
        )
        table.add_row('Transformations', str(len(config.transformations)))
        table.add_row('Mirror Storage', config.git.repo_storage)

        console.print(table)

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to load status: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        if not Path(config_path).exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')
        return Config.from_file(config_path)

    for path in DEFAULT_CONFIG_PATHS:
        if Path(path).exists():
            return Config.from_file(path)

    # Fall back to environment variables
    try:
        return Config.from_env()
    except ValueError:
        raise FileNotFoundError(
            'No configuration found. Use --config to specify a file or run "repo-sync init" to create one.'
        ) from None


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)

    # Use config logging settings, but allow verbose flag to override level
    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level, log_file=config.logging.file, log_format=config.logging.format
    )


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Migration interrupted by user[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
