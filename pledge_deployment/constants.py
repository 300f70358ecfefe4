from pathlib import Path

import pledge_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(pledge_deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

PLEDGE_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "pledge.yml"

VERIFICATION_LOG_SUFFIX = ".verification.json"

#
# Networks
#

LOCAL = "local"
HARDHAT = "hardhat"
LOCALHOST = "localhost"
SEPOLIA = "sepolia"
BSC_TESTNET = "bsc-testnet"

LOCAL_NETWORKS = [LOCAL, HARDHAT, LOCALHOST]
PUBLIC_NETWORKS = [SEPOLIA, BSC_TESTNET]
SUPPORTED_NETWORKS = LOCAL_NETWORKS + PUBLIC_NETWORKS

LOCAL_CHAIN_ID = 31337

CHAIN_IDS = {
    LOCAL: LOCAL_CHAIN_ID,
    HARDHAT: LOCAL_CHAIN_ID,
    LOCALHOST: LOCAL_CHAIN_ID,
    SEPOLIA: 11155111,
    BSC_TESTNET: 97,
}

# ape "ecosystem:network" -> network id
APE_NETWORK_ALIASES = {
    "ethereum:local": LOCAL,
    "ethereum:sepolia": SEPOLIA,
    "bsc:testnet": BSC_TESTNET,
}

# Only these networks have their sources published to a block explorer
VERIFIABLE_NETWORKS = [SEPOLIA]

#
# Auxiliary infrastructure
#

DEPLOYER_PLACEHOLDER = "$deployer"

SWAP_ROUTER = "swapRouter"
FEE_ADDRESS = "feeAddress"
ORACLE = "oracle"

SWAP_ROUTERS = {
    # Uniswap V2 router
    SEPOLIA: "0xeE567Fe1712Faf6149d80dA1E6934E354124CfE3",
    # PancakeSwap router
    BSC_TESTNET: "0xD99D1c33F9fC3444f8101754aBC46c52416550D1",
}

MOCK_ORACLE = "MockOracle"
PLEDGE_ORACLE = "BscPledgeOracle"
