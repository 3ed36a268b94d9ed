from collections import OrderedDict
from types import SimpleNamespace

import pytest
from eth_utils import to_checksum_address

from credit_deployment.constants import (
    PROXY_ADMIN_CONTRACT,
    RESERVE_REGISTRY,
    RISK_ORACLE,
    STABLE_CREDIT_REGISTRY,
)
from credit_deployment.registry import DeploymentRegistry

CHAIN_ID = 1337
DEPLOYER = to_checksum_address("0x" + "d" * 40)
OTHER_SIGNER = to_checksum_address("0x" + "e" * 40)


def address(n: int) -> str:
    return to_checksum_address(f"0x{n:040x}")


def function_abi(name, inputs=()):
    return {
        "type": "function",
        "name": name,
        "inputs": [
            {"name": input_name, "type": input_type, "internalType": input_type}
            for input_name, input_type in inputs
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    }


RISK_ORACLE_ABI = [
    function_abi("initialize", [("_operator", "address")]),
    function_abi("setBaseFeeRate", [("network", "address"), ("rate", "uint256")]),
]
NO_ARGS_INITIALIZER_ABI = [function_abi("initialize")]

ABIS = {
    RISK_ORACLE: RISK_ORACLE_ABI,
    STABLE_CREDIT_REGISTRY: NO_ARGS_INITIALIZER_ABI,
    RESERVE_REGISTRY: NO_ARGS_INITIALIZER_ABI,
}


class FakeMethod:
    def __init__(self, contract, name):
        self.contract = contract
        self.name = name

    def encode_input(self, *args) -> bytes:
        return f"{self.name}{args}".encode()


class FakeInstance:
    def __init__(self, name, instance_address, receipt):
        self.contract_type = SimpleNamespace(name=name)
        self.address = instance_address
        self.receipt = receipt

    def __getattr__(self, item):
        return FakeMethod(self, item)


class FakeContainer:
    def __init__(self, name):
        self.contract_type = SimpleNamespace(name=name)


class FakeEnvironment:
    """In-memory stand in for DeploymentEnvironment."""

    def __init__(self, registry: DeploymentRegistry):
        self.registry = registry
        self.chain_id = registry.chain_id
        self.missing_code = set()
        self.deployments = list()
        self.transactions = list()
        self.artifact_reads = list()
        self._account = SimpleNamespace(address=DEPLOYER)
        self._next_address = 1
        self._block_number = 100

    def _receipt(self):
        self._block_number += 1
        return SimpleNamespace(
            txn_hash=f"0x{self._block_number:064x}",
            block_number=self._block_number,
            transaction=SimpleNamespace(sender=DEPLOYER),
        )

    def get_account(self):
        return self._account

    def get_signers(self):
        return [self._account, SimpleNamespace(address=OTHER_SIGNER)]

    def get_contract_container(self, contract_name):
        return FakeContainer(contract_name)

    def get_proxy_container(self, contract_name):
        return FakeContainer(contract_name)

    def read_artifact(self, contract_name):
        self.artifact_reads.append(contract_name)
        return ABIS[contract_name]

    def deploy(self, container, params=None):
        params = params or OrderedDict()
        instance = FakeInstance(
            container.contract_type.name, address(self._next_address), self._receipt()
        )
        self._next_address += 1
        self.deployments.append((container.contract_type.name, params, instance))
        return instance

    def deployed_names(self):
        return [name for name, _, _ in self.deployments]

    def is_deployed(self, contract_address):
        return contract_address not in self.missing_code

    def get_proxy_admin(self, proxy_address):
        return FakeInstance(PROXY_ADMIN_CONTRACT, address(0xADA), None)

    def transact(self, method, *args):
        self.transactions.append((method.contract.contract_type.name, method.name, args))
        return self._receipt()


@pytest.fixture
def registry_filepath(tmp_path):
    return tmp_path / "artifacts" / "local.json"


@pytest.fixture
def deployment_registry(registry_filepath):
    return DeploymentRegistry(filepath=registry_filepath, chain_id=CHAIN_ID)


@pytest.fixture
def env(deployment_registry):
    return FakeEnvironment(registry=deployment_registry)
