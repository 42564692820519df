from glue_gun.cli import cli

cli()
