#!/usr/bin/python3

from pathlib import Path

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, network_option

from pledge_deployment.constants import PLEDGE_PARAMS_FILEPATH
from pledge_deployment.networks import network_id_from_provider, resolve
from pledge_deployment.registry import DeploymentRegistry
from pledge_deployment.utils import get_artifact_filepath, get_verifier_api_key, load_config
from pledge_deployment.verification import (
    ExplorerVerifier,
    VerificationLog,
    VerificationPipeline,
)


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@click.option(
    "--contract-name",
    "-c",
    "contract_names",
    help="Contract to verify",
    type=click.STRING,
    required=True,
    multiple=True,
)
@click.option(
    "--registry-filepath",
    "-f",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    help="Registry filepath; defaults to the artifact of the pledge parameters file",
    required=False,
)
def cli(network, contract_names, registry_filepath):
    """Verify deployed contracts of the registry."""
    if registry_filepath is None:
        registry_filepath = get_artifact_filepath(load_config(PLEDGE_PARAMS_FILEPATH))

    api_key = get_verifier_api_key(networks.provider.network.ecosystem.name)
    profile = resolve(network_id_from_provider(), verifier_api_key=api_key)
    if not profile.verification_enabled:
        raise click.ClickException(
            f"Verification is not available for {profile.id} "
            "(unsupported network or missing API key)."
        )

    registry = DeploymentRegistry(registry_filepath, network=profile.id)
    pipeline = VerificationPipeline(
        verifier=ExplorerVerifier(),
        profile=profile,
        log=VerificationLog.for_registry(registry_filepath, network=profile.id),
    )

    failures = 0
    for contract_name in contract_names:
        record = registry.get(contract_name)
        if record is None:
            raise click.ClickException(
                f"Contract '{contract_name}' not found in registry, '{registry_filepath}', "
                f"for network {profile.id}"
            )
        click.echo(f"(i) Verifying {record.name} at {record.address}...")
        outcome = pipeline.verify(record, step_name=record.step or record.name)
        if outcome.succeeded:
            click.echo(f"{record.name} verified")
        else:
            failures += 1
            click.echo(f"Error verifying {record.name}: {outcome.error_message}", err=True)

    if failures:
        raise click.ClickException(f"{failures} contract(s) failed verification")


if __name__ == "__main__":
    cli()
