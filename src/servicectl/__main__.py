from servicectl.cli import cli

cli()
