"""
Deployment steps of the pledge protocol.

The multi-signature wallet owns every other contract. Local networks get mock
swap infrastructure and a mock oracle; public networks reuse a known swap
router and deploy the real oracle.
"""

from typing import Any, List

from pledge_deployment.constants import FEE_ADDRESS, ORACLE, SWAP_ROUTER
from pledge_deployment.errors import DeploymentConfigError
from pledge_deployment.steps import (
    BuildContext,
    ContractSpec,
    Dependency,
    StepDefinition,
    local_only,
)

MULTI_SIGNATURE = "multiSignature"
SP_DEBT_TOKEN = "spDebtToken"
JP_DEBT_TOKEN = "jpDebtToken"
MOCK_SWAP_ROUTER = "mockSwapRouter"
PLEDGE_POOL = "pledgePool"

MOCK_WETH = "MockWETH"
UNISWAP_FACTORY = "UniswapV2Factory"
MOCK_USDT = "MockUSDT"
MOCK_BTC = "MockBTC"
MOCK_USDC = "MockUSDC"

MOCK_TOKEN_FIELDS = ("name", "symbol", "decimals", "supply")


def _multi_signature_args(context: BuildContext) -> List[Any]:
    return [context.constant("OWNERS"), context.constant("SIGNATURE_THRESHOLD")]


def _debt_token_args(prefix: str):
    def build(context: BuildContext) -> List[Any]:
        return [
            context.constant(f"{prefix}_TOKEN_NAME"),
            context.constant(f"{prefix}_TOKEN_SYMBOL"),
            context.address(MULTI_SIGNATURE),
        ]

    return build


def _mock_token_args(key: str):
    def build(context: BuildContext) -> List[Any]:
        tokens = context.constant("MOCK_TOKENS")
        if key not in tokens:
            raise DeploymentConfigError(f"Mock token '{key}' not found in MOCK_TOKENS.")
        token = tokens[key]
        missing = [field for field in MOCK_TOKEN_FIELDS if field not in token]
        if missing:
            raise DeploymentConfigError(
                f"Mock token '{key}' is missing {', '.join(missing)} in MOCK_TOKENS."
            )
        return [token[field] for field in MOCK_TOKEN_FIELDS]

    return build


def _oracle_args(context: BuildContext) -> List[Any]:
    if context.profile.is_local:
        # the mock oracle is not governed by the multi-signature wallet
        return []
    return [context.address(MULTI_SIGNATURE)]


def _pledge_pool_args(context: BuildContext) -> List[Any]:
    return [
        context.address(ORACLE),
        context.address(SWAP_ROUTER),
        context.address(FEE_ADDRESS),
        context.address(MULTI_SIGNATURE),
    ]


MULTI_SIGNATURE_STEP = StepDefinition(
    name=MULTI_SIGNATURE,
    contract_type="MultiSignature",
    build=_multi_signature_args,
)

SP_DEBT_TOKEN_STEP = StepDefinition(
    name=SP_DEBT_TOKEN,
    dependencies=[MULTI_SIGNATURE],
    contract_type="DebtToken",
    build=_debt_token_args("SP"),
)

JP_DEBT_TOKEN_STEP = StepDefinition(
    name=JP_DEBT_TOKEN,
    dependencies=[MULTI_SIGNATURE],
    contract_type="DebtToken",
    build=_debt_token_args("JP"),
)

MOCK_SWAP_ROUTER_STEP = StepDefinition(
    name=MOCK_SWAP_ROUTER,
    contracts=[
        ContractSpec(name=MOCK_WETH),
        ContractSpec(name=UNISWAP_FACTORY, build=lambda context: [context.deployer]),
        ContractSpec(
            name=SWAP_ROUTER,
            contract_type="UniswapV2Router02",
            build=lambda context: [
                context.address(UNISWAP_FACTORY),
                context.address(MOCK_WETH),
            ],
        ),
        ContractSpec(name=MOCK_USDT, contract_type="MockERC20", build=_mock_token_args("USDT")),
        ContractSpec(name=MOCK_BTC, contract_type="MockERC20", build=_mock_token_args("BTC")),
        ContractSpec(name=MOCK_USDC, contract_type="MockERC20", build=_mock_token_args("USDC")),
    ],
    applicability=local_only,
    verify=False,
)

# MockOracle on local networks, BscPledgeOracle elsewhere (see the network profile)
ORACLE_STEP = StepDefinition(
    name=ORACLE,
    dependencies=[MULTI_SIGNATURE],
    build=_oracle_args,
)

PLEDGE_POOL_STEP = StepDefinition(
    name=PLEDGE_POOL,
    dependencies=[
        MULTI_SIGNATURE,
        ORACLE,
        Dependency(step=MOCK_SWAP_ROUTER, fallback=(SWAP_ROUTER,)),
    ],
    contract_type="PledgePool",
    build=_pledge_pool_args,
)

PLEDGE_STEPS = [
    MULTI_SIGNATURE_STEP,
    SP_DEBT_TOKEN_STEP,
    JP_DEBT_TOKEN_STEP,
    MOCK_SWAP_ROUTER_STEP,
    ORACLE_STEP,
    PLEDGE_POOL_STEP,
]
