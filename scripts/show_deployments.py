#!/usr/bin/python3

from pathlib import Path

import click

from pledge_deployment.constants import PLEDGE_PARAMS_FILEPATH
from pledge_deployment.registry import DeploymentRegistry
from pledge_deployment.report import format_addresses
from pledge_deployment.types import NetworkId
from pledge_deployment.utils import get_artifact_filepath, load_config


@click.command()
@click.option(
    "--network-id",
    "-n",
    help="Network whose deployments to show",
    type=NetworkId(),
    required=True,
)
@click.option(
    "--registry-filepath",
    "-f",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    help="Registry filepath; defaults to the artifact of the pledge parameters file",
    required=False,
)
def cli(network_id, registry_filepath):
    """Print the registered pledge contract addresses of a network."""
    if registry_filepath is None:
        registry_filepath = get_artifact_filepath(load_config(PLEDGE_PARAMS_FILEPATH))
    registry = DeploymentRegistry(registry_filepath, network=network_id)
    click.echo(f"Deployments on {network_id} ({registry_filepath}):")
    click.echo(format_addresses(registry.addresses()))


if __name__ == "__main__":
    cli()
