from okit.commands import cli

cli()
