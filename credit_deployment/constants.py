from pathlib import Path

import credit_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(credit_deployment.__file__).parent
CONFIGS_DIR = DEPLOYMENT_DIR / "configs"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

LOCAL_NETWORKS = ["local"]

#
# Contracts
#

RISK_ORACLE = "RiskOracle"
STABLE_CREDIT_REGISTRY = "StableCreditRegistry"
RESERVE_REGISTRY = "ReserveRegistry"

OZ_DEPENDENCY_NAME = "openzeppelin"
OZ_DEPENDENCY_VERSION = "5.0.0"

PROXY_CONTRACT = "TransparentUpgradeableProxy"
PROXY_ADMIN_CONTRACT = "ProxyAdmin"
DEFAULT_INITIALIZER = "initialize"

# EIP1967 Admin slot - https://eips.ethereum.org/EIPS/eip-1967#admin-address
EIP1967_ADMIN_SLOT = 0xB53127684A568B3173AE13B9F8A6016E243E63B6E8EE1178D6A717850B5D6103

#
# Migration tags
#

ORACLE_TAG = "ORACLE"
REGISTRY_TAG = "REGISTRY"
RESERVE_TAG = "RESERVE"

SUPPORTED_TAGS = [ORACLE_TAG, REGISTRY_TAG, RESERVE_TAG]
