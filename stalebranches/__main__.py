from stalebranches.main import cli

cli()
