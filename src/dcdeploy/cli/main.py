"""Command-line entry point for dcdeploy."""

import click

from dcdeploy import __version__
from dcdeploy.cli.commands.config import config
from dcdeploy.cli.commands.deploy import deploy


@click.group()
@click.version_option(__version__, prog_name="dcdeploy")
def main() -> None:
    """dcdeploy - deploy services to a Nomad cluster, one datacenter at a time."""


main.add_command(deploy)
main.add_command(config)


if __name__ == "__main__":
    main()
