from typing import Dict, Mapping, NamedTuple, Optional

from ape import networks

from pledge_deployment.constants import (
    APE_NETWORK_ALIASES,
    CHAIN_IDS,
    DEPLOYER_PLACEHOLDER,
    FEE_ADDRESS,
    LOCAL_NETWORKS,
    MOCK_ORACLE,
    ORACLE,
    PLEDGE_ORACLE,
    SUPPORTED_NETWORKS,
    SWAP_ROUTER,
    SWAP_ROUTERS,
    VERIFIABLE_NETWORKS,
)
from pledge_deployment.errors import UnsupportedNetwork


class NetworkProfile(NamedTuple):
    """Everything that varies between networks, fixed for the duration of a run."""

    id: str
    chain_id: int
    is_local: bool
    auxiliary_addresses: Mapping[str, str]
    implementations: Mapping[str, str]
    verification_enabled: bool

    def auxiliary_address(self, name: str) -> Optional[str]:
        return self.auxiliary_addresses.get(name)

    def implementation(self, name: str) -> Optional[str]:
        return self.implementations.get(name)


def is_local_network(network_id: str) -> bool:
    return network_id in LOCAL_NETWORKS


def _auxiliary_addresses(network_id: str) -> Dict[str, str]:
    # the fee collector is the deployer on every supported network
    addresses = {FEE_ADDRESS: DEPLOYER_PLACEHOLDER}
    if not is_local_network(network_id):
        # local networks get their router from the mock deployment step instead
        addresses[SWAP_ROUTER] = SWAP_ROUTERS[network_id]
    return addresses


def _implementations(network_id: str) -> Dict[str, str]:
    oracle = MOCK_ORACLE if is_local_network(network_id) else PLEDGE_ORACLE
    return {ORACLE: oracle}


def resolve(network_id: str, verifier_api_key: Optional[str] = None) -> NetworkProfile:
    """
    Returns the profile of a supported network.
    Verification is only enabled on verifiable networks when an API key is available.
    """
    if network_id not in SUPPORTED_NETWORKS:
        raise UnsupportedNetwork(network_id)

    verification_enabled = network_id in VERIFIABLE_NETWORKS and bool(verifier_api_key)
    return NetworkProfile(
        id=network_id,
        chain_id=CHAIN_IDS[network_id],
        is_local=is_local_network(network_id),
        auxiliary_addresses=_auxiliary_addresses(network_id),
        implementations=_implementations(network_id),
        verification_enabled=verification_enabled,
    )


def network_id_from_provider() -> str:
    """Maps the connected ape provider onto a supported network id."""
    network = networks.provider.network
    key = f"{network.ecosystem.name}:{network.name}"
    try:
        return APE_NETWORK_ALIASES[key]
    except KeyError:
        raise UnsupportedNetwork(key)
