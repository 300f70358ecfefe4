#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, account_option, network_option

from pledge_deployment.chain import ApeChainClient
from pledge_deployment.confirm import _continue, confirm_deployment
from pledge_deployment.errors import OrchestrationError
from pledge_deployment.networks import network_id_from_provider
from pledge_deployment.options import (
    autosign_option,
    params_filepath_option,
    redeploy_option,
    registry_filepath_option,
    report_filepath_option,
    verify_option,
)
from pledge_deployment.orchestrator import Orchestrator
from pledge_deployment.report import format_report, write_report
from pledge_deployment.utils import get_verifier_api_key
from pledge_deployment.verification import ExplorerVerifier


@click.command(cls=ConnectedProviderCommand, name="deploy-pledge")
@account_option()
@network_option(required=True)
@params_filepath_option
@registry_filepath_option
@redeploy_option
@verify_option
@autosign_option
@report_filepath_option
def cli(
    account,
    network,
    params_filepath,
    registry_filepath,
    redeploy,
    verify,
    autosign,
    report_filepath,
):
    """Deploy the pledge contracts, skipping those already in the registry."""
    if autosign:
        click.echo("WARNING: Autosign is enabled. Transactions will be signed automatically.")
    account.set_autosign(autosign)

    try:
        orchestrator = Orchestrator.from_yaml(
            filepath=params_filepath,
            chain=ApeChainClient(account),
            network_id=network_id_from_provider(),
            verifier=ExplorerVerifier() if verify else None,
            verifier_api_key=get_verifier_api_key(networks.provider.network.ecosystem.name),
            registry_filepath=registry_filepath,
            redeploy=redeploy,
            confirm=None if autosign else confirm_deployment,
        )
        click.echo("\n".join(orchestrator.deployment_info()))
        if not autosign:
            _continue()
    except OrchestrationError as error:
        raise click.ClickException(str(error))

    report = orchestrator.run()
    click.echo(f"\n{format_report(report)}")
    if report_filepath:
        click.echo(f"(i) Report written to {write_report(report, report_filepath)}")

    if not report.succeeded:
        raise click.ClickException(
            f"Deployment halted: {report.error}. "
            "Completed steps are registered; run again to resume."
        )


if __name__ == "__main__":
    cli()
