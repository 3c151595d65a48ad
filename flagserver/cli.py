"""
CLI interface for the flag server.
"""
import sys

import click

from flagserver.clients import UnleashFlagProvider
from flagserver.config import get_settings
from flagserver.errors import ExitCode
from flagserver.features import build_snapshot, serialize_snapshot
from flagserver.main import configure_logging, run


@click.group(invoke_without_command=True)
@click.option('--log-level', default=None, help='Override LOG_LEVEL (DEBUG, INFO, ...)')
@click.pass_context
def cli(ctx, log_level):
    """Flag Server - feature flag evaluation service

    Runs `serve` when no command is given.
    """
    overrides = {'log_level': log_level} if log_level else {}
    ctx.obj = get_settings(**overrides)
    configure_logging(ctx.obj)
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@cli.command()
@click.option('--host', default=None, help='Interface to listen on')
@click.option('--port', default=None, type=int, help='Port to listen on')
@click.pass_obj
def serve(app_settings, host, port):
    """Serve flag snapshots over HTTP until a termination signal arrives."""
    overrides = {'host': host, 'port': port}
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        app_settings = get_settings(**{**app_settings.model_dump(), **overrides})

    sys.exit(int(run(app_settings)))


@cli.command()
@click.pass_obj
def evaluate(app_settings):
    """Evaluate all flags once and print the snapshot."""
    provider = UnleashFlagProvider.from_settings(app_settings)
    result = provider.initialize()
    if not result.ok:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(int(ExitCode.INITIALIZATION_FAILED))

    try:
        click.echo(serialize_snapshot(build_snapshot(provider)))
    finally:
        provider.destroy()


if __name__ == '__main__':
    cli()
