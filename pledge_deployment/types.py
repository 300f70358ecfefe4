import click

from pledge_deployment.constants import APE_NETWORK_ALIASES, SUPPORTED_NETWORKS


class NetworkId(click.Choice):
    """A supported network id; accepts the ape `ecosystem:network` aliases as well."""

    name = "network_id"

    def __init__(self):
        super().__init__(SUPPORTED_NETWORKS)

    def convert(self, value, param, ctx):
        value = APE_NETWORK_ALIASES.get(value, value)
        return super().convert(value, param, ctx)
