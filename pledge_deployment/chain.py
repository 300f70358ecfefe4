from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from ape import project
from ape.api import AccountAPI
from ape.contracts import ContractContainer
from ape.logging import logger
from eth_typing import ChecksumAddress
from eth_utils import encode_hex, keccak, to_checksum_address


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            return getattr(dependency_api, contract)
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


class ChainClient(ABC):
    """Deploys contracts on behalf of a single signer."""

    @property
    @abstractmethod
    def deployer(self) -> ChecksumAddress:
        raise NotImplementedError

    @abstractmethod
    def bytecode_hash(self, contract_type: str) -> Optional[str]:
        """Hash of the deployment bytecode of a contract kind, or None if it is unknown."""
        raise NotImplementedError

    @abstractmethod
    def deploy(self, contract_type: str, constructor_args: Sequence[Any]) -> ChecksumAddress:
        """Deploys a contract and returns its address; raises on any chain or transport error."""
        raise NotImplementedError


class ApeChainClient(ChainClient):
    """Deploys compiled contracts of the ape project with an ape account."""

    def __init__(self, account: AccountAPI):
        self._account = account

    @property
    def deployer(self) -> ChecksumAddress:
        return to_checksum_address(self._account.address)

    def bytecode_hash(self, contract_type: str) -> Optional[str]:
        container = get_contract_container(contract_type)
        deployment_bytecode = container.contract_type.deployment_bytecode
        if deployment_bytecode is None or not deployment_bytecode.bytecode:
            return None
        return encode_hex(keccak(hexstr=deployment_bytecode.bytecode))

    def deploy(self, contract_type: str, constructor_args: Sequence[Any]) -> ChecksumAddress:
        container = get_contract_container(contract_type)
        logger.info(f"Deploying {contract_type} from {self.deployer}")
        # publishing is done separately so that explorer errors never fail a deployment
        instance = self._account.deploy(container, *constructor_args, publish=False)
        return to_checksum_address(instance.address)
