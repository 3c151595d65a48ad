from flagserver.cli import cli

cli()
