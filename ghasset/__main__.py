from ghasset.main import cli

cli()
