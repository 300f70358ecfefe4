import pytest
from eth_utils import to_checksum_address

from pledge_deployment.constants import BSC_TESTNET, SEPOLIA, SWAP_ROUTERS
from pledge_deployment.errors import DeploymentConfigError
from pledge_deployment.executor import Executor, StepStatus
from pledge_deployment.networks import resolve
from pledge_deployment.pledge import PLEDGE_STEPS
from pledge_deployment.registry import DeploymentRegistry
from pledge_deployment.scheduler import excluded, schedule
from pledge_deployment.verification import VerificationPipeline
from tests.conftest import DEPLOYER, VERIFIER_API_KEY, FakeChain, FakeVerifier


def deploy_pledge(chain, registry, profile, constants, verifier=None):
    executor = Executor(
        chain=chain,
        registry=registry,
        profile=profile,
        verification=VerificationPipeline(verifier=verifier, profile=profile),
        constants=constants,
    )
    steps = schedule(PLEDGE_STEPS, profile)
    return executor.execute(steps, excluded=excluded(PLEDGE_STEPS, profile))


def args_of(chain, contract_type):
    return [args for deployed_type, args, _ in chain.deployments if deployed_type == contract_type]


def test_local_deployment(chain, local_registry, local_profile, pledge_constants):
    report = deploy_pledge(chain, local_registry, local_profile, pledge_constants)

    assert report.succeeded
    assert report.excluded == []
    assert chain.deployed_types == [
        "MultiSignature",
        "DebtToken",
        "DebtToken",
        "MockWETH",
        "UniswapV2Factory",
        "UniswapV2Router02",
        "MockERC20",
        "MockERC20",
        "MockERC20",
        "MockOracle",
        "PledgePool",
    ]

    owners = [to_checksum_address(owner) for owner in pledge_constants["OWNERS"]]
    multi_signature = local_registry.get("multiSignature").address
    assert args_of(chain, "MultiSignature") == [[owners, 2]]
    assert args_of(chain, "DebtToken") == [
        ["spBTC_1", "spBTC_1", multi_signature],
        ["jpBTC_1", "jpBTC_1", multi_signature],
    ]
    assert args_of(chain, "MockOracle") == [[]]
    assert args_of(chain, "UniswapV2Factory") == [[DEPLOYER]]
    assert args_of(chain, "UniswapV2Router02") == [
        [local_registry.get("UniswapV2Factory").address, local_registry.get("MockWETH").address]
    ]
    assert args_of(chain, "MockERC20")[0] == ["Mock Tether USD", "USDT", 6, 1000000000000]
    assert args_of(chain, "MockERC20")[1] == ["Mock Bitcoin", "BTC", 8, 2100000000000000]

    assert args_of(chain, "PledgePool") == [
        [
            chain.address_of("MockOracle"),
            chain.address_of("UniswapV2Router02"),
            DEPLOYER,
            multi_signature,
        ]
    ]
    assert local_registry.get("oracle").contract_type == "MockOracle"
    assert local_registry.get("swapRouter").contract_type == "UniswapV2Router02"
    assert not any(outcome.attempted for outcome in report.verifications)


def test_sepolia_deployment(chain, sepolia_registry, sepolia_profile, pledge_constants):
    verifier = FakeVerifier()
    report = deploy_pledge(chain, sepolia_registry, sepolia_profile, pledge_constants, verifier)

    assert report.succeeded
    assert report.excluded == ["mockSwapRouter"]
    assert chain.deployed_types == [
        "MultiSignature",
        "DebtToken",
        "DebtToken",
        "BscPledgeOracle",
        "PledgePool",
    ]
    multi_signature = sepolia_registry.get("multiSignature").address
    assert args_of(chain, "BscPledgeOracle") == [[multi_signature]]
    assert args_of(chain, "PledgePool") == [
        [
            chain.address_of("BscPledgeOracle"),
            SWAP_ROUTERS[SEPOLIA],
            DEPLOYER,
            multi_signature,
        ]
    ]
    assert not sepolia_registry.has("swapRouter")
    assert verifier.verified_types == chain.deployed_types
    assert list(report.addresses) == [
        "multiSignature",
        "spDebtToken",
        "jpDebtToken",
        "oracle",
        "pledgePool",
    ]


def test_bsc_testnet_is_not_verified(registry_filepath, pledge_constants):
    profile = resolve(BSC_TESTNET, verifier_api_key=VERIFIER_API_KEY)
    registry = DeploymentRegistry(registry_filepath, network=BSC_TESTNET)
    chain, verifier = FakeChain(), FakeVerifier()
    report = deploy_pledge(chain, registry, profile, pledge_constants, verifier)

    assert report.succeeded
    assert verifier.requests == []
    assert args_of(chain, "PledgePool")[0][1] == SWAP_ROUTERS[BSC_TESTNET]


def test_redeploying_pledge_is_idempotent(local_registry, local_profile, pledge_constants):
    first = deploy_pledge(FakeChain(), local_registry, local_profile, pledge_constants)

    chain = FakeChain(nonce=100)
    second = deploy_pledge(chain, local_registry, local_profile, pledge_constants)

    assert chain.deployments == []
    assert all(outcome.status == StepStatus.SKIPPED for outcome in second.steps)
    assert second.addresses == first.addresses


def test_changed_constant_redeploys_one_step(local_registry, local_profile, pledge_constants):
    deploy_pledge(FakeChain(), local_registry, local_profile, pledge_constants)

    constants = dict(pledge_constants, JP_TOKEN_SYMBOL="jpBTC_2")
    chain = FakeChain(nonce=100)
    report = deploy_pledge(chain, local_registry, local_profile, constants)

    assert report.names(StepStatus.DEPLOYED) == ["jpDebtToken"]
    assert args_of(chain, "DebtToken") == [
        ["jpBTC_1", "jpBTC_2", local_registry.get("multiSignature").address]
    ]


@pytest.mark.parametrize("network_id", [SEPOLIA, BSC_TESTNET])
def test_public_network_does_not_need_mock_constants(network_id, registry_filepath):
    profile = resolve(network_id)
    registry = DeploymentRegistry(registry_filepath, network=network_id)
    constants = {
        "OWNERS": [DEPLOYER],
        "SIGNATURE_THRESHOLD": 1,
        "SP_TOKEN_NAME": "sp",
        "SP_TOKEN_SYMBOL": "sp",
        "JP_TOKEN_NAME": "jp",
        "JP_TOKEN_SYMBOL": "jp",
    }
    report = deploy_pledge(FakeChain(), registry, profile, constants)
    assert report.succeeded


def test_missing_constant_halts_before_deploying(local_registry, local_profile, chain):
    report = deploy_pledge(chain, local_registry, local_profile, constants={})

    assert not report.succeeded
    assert "OWNERS" in str(report.error)
    assert report.status("multiSignature") == StepStatus.FAILED
    assert chain.deployments == []
    assert len(local_registry) == 0


def test_incomplete_mock_token_halts_the_run(local_registry, local_profile, pledge_constants):
    mock_tokens = dict(pledge_constants["MOCK_TOKENS"])
    del mock_tokens["BTC"]
    constants = dict(pledge_constants, MOCK_TOKENS=mock_tokens)

    chain = FakeChain()
    report = deploy_pledge(chain, local_registry, local_profile, constants)

    assert isinstance(report.error, DeploymentConfigError)
    assert "BTC" in str(report.error)
    assert report.status("mockSwapRouter") == StepStatus.FAILED
    assert report.names(StepStatus.NOT_ATTEMPTED) == ["oracle", "pledgePool"]
    assert not local_registry.has("swapRouter")
    assert list(report.addresses) == ["multiSignature", "spDebtToken", "jpDebtToken"]


def test_mock_token_missing_a_field(local_registry, local_profile, pledge_constants):
    mock_tokens = dict(pledge_constants["MOCK_TOKENS"])
    mock_tokens["USDC"] = {"name": "Mock USD Coin", "symbol": "USDC"}
    constants = dict(pledge_constants, MOCK_TOKENS=mock_tokens)

    report = deploy_pledge(FakeChain(), local_registry, local_profile, constants)

    assert isinstance(report.error, DeploymentConfigError)
    assert "decimals, supply" in str(report.error)
