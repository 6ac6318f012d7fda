"""
Command-line interface for helm-s3repo.
"""

import os
from pathlib import Path
from typing import Callable, Optional

import click

from . import __version__
from .config import AppConfig, LoggingConfig, get_config_manager
from .error_handling import BadInputError, ErrorHandler
from .logging import LoggerConfig, setup_logging
from .models import AddResult, ConfigureResult
from .repository import ConflictMode, RepositoryManager

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class RepoCommandGroup(click.Group):
    """
    Command group that answers unknown commands with the top-level usage
    and exit status 1.
    """

    def resolve_command(self, ctx: click.Context, args):
        cmd_name = args[0] if args else None
        if cmd_name and not cmd_name.startswith("-") and self.get_command(ctx, cmd_name) is None:
            click.echo(ctx.get_help())
            ctx.exit(1)
        return super().resolve_command(ctx, args)


@click.group(cls=RepoCommandGroup, invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__)
@click.option(
    '--config', '-c',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to configuration file'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Increase verbosity (use -v or -vv)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int) -> None:
    """
    Create and manage an S3 bucket as a public helm repository.

    \b
    Available Commands:
      configure  Configure (or create) an S3 bucket with the settings necessary to operate as a public helm repo
      add        Add a chart to a configured S3 bucket, effectively updating the repository
    """
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose

    setup_logging(LoggerConfig.from_app_config(LoggingConfig(), verbose))

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


@cli.command(name='help')
@click.pass_context
def help_command(ctx: click.Context) -> None:
    """Show this message and exit."""
    click.echo(ctx.parent.get_help())


@cli.command()
@click.argument('bucket', required=False)
@click.option('-y', 'assume_yes', is_flag=True,
              help="Answer yes to all questions (attempt to create bucket if it doesn't exist, "
                   "and overwrite conflicting objects if necessary)")
@click.option('-n', 'assume_no', is_flag=True,
              help="Answer no to all questions (exit on failure with any conflicts, "
                   "or if the bucket doesn't exist)")
@click.pass_context
def configure(ctx: click.Context, bucket: Optional[str], assume_yes: bool, assume_no: bool) -> None:
    """
    Configure (or create) an S3 bucket with the settings necessary to operate as a public helm repo.

    This will set up the specified S3 bucket with a public index.yaml file.

    Examples:

    \b
        # Create a helm repository with a new or existing bucket named 'my-s3-bucket'
        $ helm s3repo configure my-s3-bucket

    \b
        # Create a helm repository with the existing bucket 'my-s3-bucket',
        # and exit on failure if any conflicting files exist
        $ helm s3repo configure my-s3-bucket -n
    """
    def operation(manager: RepositoryManager) -> None:
        display_configure_result(manager.configure(bucket))

    if not bucket:
        click.echo(ctx.get_help())
        _fail(ctx, BadInputError("S3 bucket name required", missing=["bucket"]))

    run_operation(ctx, assume_yes, assume_no, operation)


@cli.command()
@click.argument('bucket', required=False)
@click.argument('chart', required=False, type=click.Path(path_type=Path))
@click.option('-y', 'assume_yes', is_flag=True,
              help='Answer yes to all questions (can overwrite existing chart with matching version)')
@click.option('-n', 'assume_no', is_flag=True,
              help='Answer no to all questions (exit on failure with any conflicts)')
@click.pass_context
def add(
    ctx: click.Context,
    bucket: Optional[str],
    chart: Optional[Path],
    assume_yes: bool,
    assume_no: bool
) -> None:
    """
    Add a chart to a configured S3 bucket.

    After adding a chart, performing a 'helm repo update' should find the
    newly added chart.

    If you have an adjacent .prov file for verification, this will be
    automatically uploaded as well.

    Examples:

    \b
        # Add the packaged foo-0.1.0.tgz chart to the s3-hosted helm repo in my-s3-bucket
        $ helm s3repo add my-s3-bucket foo-0.1.0.tgz

    \b
        # Add the packaged foo-0.1.0.tgz chart to the repo, but exit on failure with any conflicts
        $ helm s3repo add my-s3-bucket foo-0.1.0.tgz -n
    """
    def operation(manager: RepositoryManager) -> None:
        display_add_result(manager.add(bucket, chart), ctx.obj.get('verbose', 0))

    if not bucket:
        click.echo(ctx.get_help())
        _fail(ctx, BadInputError("S3 bucket name and chart required", missing=["bucket", "chart"]))
    if not chart:
        click.echo(ctx.get_help())
        _fail(ctx, BadInputError("chart required", missing=["chart"]))

    run_operation(ctx, assume_yes, assume_no, operation)


def build_repository_manager(config: AppConfig, mode: ConflictMode) -> RepositoryManager:
    """Create the repository manager for one invocation."""
    return RepositoryManager.from_config(config, mode)


def run_operation(
    ctx: click.Context,
    assume_yes: bool,
    assume_no: bool,
    operation: Callable[[RepositoryManager], None]
) -> None:
    """
    Load configuration, build the manager and run one operation.

    Every failure is reported on stderr and ends the process with status 1.
    """
    verbose = ctx.obj.get('verbose', 0)

    try:
        mode = ConflictMode.from_flags(assume_yes, assume_no)

        config = get_config_manager(ctx.obj.get('config_file')).get_config()
        setup_logging(LoggerConfig.from_app_config(config.logging, verbose), force=True)

        manager = build_repository_manager(config, mode)
        operation(manager)

    except click.exceptions.Abort:
        raise
    except Exception as e:
        _fail(ctx, e)


def _fail(ctx: click.Context, error: Exception) -> None:
    exit_code = ErrorHandler().handle_error(
        error,
        context={"command": ctx.info_name},
        verbose=ctx.obj.get('verbose', 0)
    )
    ctx.exit(exit_code)


def display_configure_result(result: ConfigureResult) -> None:
    """Display the outcome of ``configure``."""
    if result.bucket_created:
        click.echo(f"Created S3 bucket '{result.bucket}'")
    if result.index_overwritten:
        click.echo("Replaced the existing index.yaml")

    click.echo("Your helm repository is now set up and empty.")
    click.echo(
        f"Add your public repo with: 'helm repo add NAME {result.repository_url.rstrip('/')}'\n"
        "(NAME can be anything)"
    )


def display_add_result(result: AddResult, verbose: int) -> None:
    """Display the outcome of ``add``."""
    click.echo("Chart uploaded")
    click.echo("Index updated")
    if result.provenance_uploaded:
        click.echo("Additional .prov file found and uploaded")

    if verbose > 0:
        for key in result.uploaded_keys:
            click.echo(f"  - s3://{result.bucket}/{key}")
        if result.index_entries is not None:
            click.echo(f"Index now lists {result.index_entries} chart versions")

    click.echo(
        f"Chart {result.filename} has been successfully uploaded and index is updated.\n"
        "Run 'helm repo update' to pull and confirm the new changes locally"
    )


def main() -> None:
    """Main entry point for the CLI."""
    # Helm sets HELM_PLUGIN_NAME when running the tool as a plugin
    prog_name = "helm s3repo" if os.environ.get("HELM_PLUGIN_NAME") else None
    cli(prog_name=prog_name)


if __name__ == '__main__':
    main()
