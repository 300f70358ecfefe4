from pathlib import Path

import click

from pledge_deployment.constants import PLEDGE_PARAMS_FILEPATH
from pledge_deployment.pledge import PLEDGE_STEPS

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without asking for confirmation.",
    is_flag=True,
    default=False,
)

verify_option = click.option(
    "--verify/--no-verify",
    help="Publish contract sources to the network's block explorer, where supported.",
    default=True,
    show_default=True,
)

params_filepath_option = click.option(
    "--params-filepath",
    "-p",
    help="Parameters file of the deployment.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=PLEDGE_PARAMS_FILEPATH,
    show_default=True,
)

registry_filepath_option = click.option(
    "--registry-filepath",
    "-f",
    help="Registry filepath; defaults to the artifact named in the parameters file.",
    type=click.Path(dir_okay=False, path_type=Path),
    required=False,
)

redeploy_option = click.option(
    "--redeploy",
    "-r",
    help="Step to deploy again even if it is already registered.",
    type=click.Choice([step.name for step in PLEDGE_STEPS]),
    multiple=True,
)

report_filepath_option = click.option(
    "--report-filepath",
    help="Also write the execution report as JSON to this file.",
    type=click.Path(dir_okay=False, path_type=Path),
    required=False,
)
