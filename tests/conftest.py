import pytest
from eth_utils import encode_hex, keccak, to_checksum_address

from pledge_deployment.chain import ChainClient
from pledge_deployment.constants import LOCAL, PLEDGE_PARAMS_FILEPATH, SEPOLIA
from pledge_deployment.networks import resolve
from pledge_deployment.registry import DeploymentRegistry
from pledge_deployment.steps import StepDefinition
from pledge_deployment.utils import load_config
from pledge_deployment.verification import Verifier

# Common constants
DEPLOYER = to_checksum_address("0x" + "de" * 20)
VERIFIER_API_KEY = "test-api-key"


# Utility functions
def address_for(index):
    return to_checksum_address(f"0x{index + 1:040x}")


def simple_steps(**dependencies):
    """Steps deploying a contract of the same name, e.g. simple_steps(A=[], B=["A"])."""
    return [
        StepDefinition(
            name=name,
            dependencies=deps,
            build=lambda context, deps=deps: [context.address(d) for d in deps],
        )
        for name, deps in dependencies.items()
    ]


class FakeChain(ChainClient):
    """
    Deploys to sequential addresses; fails for the given contract types.
    Bytecode hashes derive from the contract type unless overridden in ``bytecode``.
    """

    def __init__(self, fail_on=(), nonce=0, bytecode=None):
        self.fail_on = set(fail_on)
        self.bytecode = dict(bytecode or {})
        self.deployments = list()
        self._nonce = nonce

    @property
    def deployer(self):
        return DEPLOYER

    def bytecode_hash(self, contract_type):
        if contract_type in self.bytecode:
            return self.bytecode[contract_type]
        return encode_hex(keccak(text=contract_type))

    def deploy(self, contract_type, constructor_args):
        if contract_type in self.fail_on:
            raise RuntimeError(f"RPC error while deploying {contract_type}")
        address = address_for(self._nonce)
        self._nonce += 1
        self.deployments.append((contract_type, list(constructor_args), address))
        return address

    @property
    def deployed_types(self):
        return [contract_type for contract_type, _, _ in self.deployments]

    def address_of(self, contract_type):
        for deployed_type, _, address in self.deployments:
            if deployed_type == contract_type:
                return address
        raise KeyError(contract_type)


class FakeVerifier(Verifier):
    """Records verification requests; fails for the given contract types."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.requests = list()

    def verify(self, address, contract_type, constructor_args):
        self.requests.append((contract_type, address, list(constructor_args)))
        if contract_type in self.fail_on:
            raise RuntimeError("Too many requests, rate limit exceeded")

    @property
    def verified_types(self):
        return [contract_type for contract_type, _, _ in self.requests]


# Fixtures
@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def local_profile():
    return resolve(LOCAL)


@pytest.fixture
def sepolia_profile():
    return resolve(SEPOLIA, verifier_api_key=VERIFIER_API_KEY)


@pytest.fixture
def registry_filepath(tmp_path):
    return tmp_path / "artifacts" / "pledge.json"


@pytest.fixture
def local_registry(registry_filepath):
    return DeploymentRegistry(registry_filepath, network=LOCAL)


@pytest.fixture
def sepolia_registry(registry_filepath):
    return DeploymentRegistry(registry_filepath, network=SEPOLIA)


@pytest.fixture(scope="session")
def pledge_config():
    return load_config(PLEDGE_PARAMS_FILEPATH)


@pytest.fixture(scope="session")
def pledge_constants(pledge_config):
    return pledge_config["constants"]
