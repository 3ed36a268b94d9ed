import json
import os
from pathlib import Path
from typing import Dict, List

import yaml
from ape import networks, project
from ape.contracts import ContractContainer, ContractInstance

from credit_deployment.constants import ARTIFACTS_DIR, CONFIGS_DIR, LOCAL_NETWORKS


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def get_artifact_filepath(config: Dict) -> Path:
    """Returns the filepath of the registry file."""
    artifact_config = config.get("artifacts", {})
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise ValueError("artifact filename is not set in config file.")
    return artifact_dir / filename


def get_config_chain_id(config: Dict) -> int:
    """Returns the chain ID a deployment config is written for."""
    deployment = config.get("deployment")
    if not deployment:
        raise ValueError("deployment is not set in config file.")

    config_chain_id = deployment.get("chain_id")
    if not config_chain_id:
        raise ValueError("chain_id is not set in config file.")

    return int(config_chain_id)


def validate_config(config: Dict) -> int:
    """
    Checks the config file against the connected network and
    returns the chain ID the deployment targets.
    """
    print("Validating deployment config...")

    config_chain_id = get_config_chain_id(config)
    get_artifact_filepath(config)

    network_chain_id = networks.provider.network.chain_id
    chain_mismatch = config_chain_id != network_chain_id
    if chain_mismatch and not is_local_network():
        raise ValueError(
            f"chain_id in config file ({config_chain_id}) does not match "
            f"chain_id of current network ({network_chain_id})."
        )

    return config_chain_id


def config_filepath_from_network(network_name: str) -> Path:
    p = CONFIGS_DIR / f"{network_name}.yml"
    if not p.exists():
        raise ValueError(f"No deployment config found for network '{network_name}'")

    return p


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to use this script.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    api_key = os.environ.get(explorer_envvar)
    if not api_key:
        raise ValueError(f"{explorer_envvar} is not set.")


def check_infura_plugin() -> None:
    """Checks that the ape-infura plugin is installed."""
    if is_local_network():
        return  # unnecessary for local deployment
    if networks.provider.name != "infura":
        return  # unnecessary when using a provider different than infura
    try:
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES
    except ImportError:
        raise ImportError("Please install the ape-infura plugin to use this script.")
    for envvar in _ENVIRONMENT_VARIABLE_NAMES:
        api_key = os.environ.get(envvar)
        if api_key:
            break
    else:
        raise ValueError(
            f"No Infura API key found in "
            f"environment variables: {', '.join(_ENVIRONMENT_VARIABLE_NAMES)}"
        )


def check_plugins(verify: bool = True) -> None:
    print("Checking plugins...")
    if verify:
        check_etherscan_plugin()
    check_infura_plugin()


def verify_contracts(contracts: List[ContractInstance]) -> None:
    explorer = networks.provider.network.explorer
    for instance in contracts:
        print(f"(i) Verifying {instance.contract_type.name}...")
        explorer.publish_contract(instance.address)


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
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


def get_chain_name(chain_id: int) -> str:
    """Returns the name of the chain given its chain ID."""
    for ecosystem_name, ecosystem in networks.ecosystems.items():
        for network_name, network in ecosystem.networks.items():
            if network.chain_id == chain_id:
                return f"{ecosystem_name} {network_name}"
    raise ValueError(f"Chain ID {chain_id} not found in networks.")
