from collections import OrderedDict
from types import SimpleNamespace

import pytest

from credit_deployment import environment, utils
from credit_deployment.constants import EIP1967_ADMIN_SLOT, PROXY_ADMIN_CONTRACT
from credit_deployment.environment import DeploymentEnvironment
from credit_deployment.utils import validate_config
from tests.conftest import CHAIN_ID, DEPLOYER, OTHER_SIGNER, FakeContainer, address

CONFIG = {
    "deployment": {"name": "stable-credit-test", "chain_id": CHAIN_ID},
    "artifacts": {"filename": "local.json"},
}


def connect(monkeypatch, network_name, chain_id):
    network = SimpleNamespace(name=network_name, chain_id=chain_id)
    provider = SimpleNamespace(network=network)
    monkeypatch.setattr(utils, "networks", SimpleNamespace(provider=provider))


class RecordingAccount:
    def __init__(self, account_address):
        self.address = account_address
        self.deployments = list()

    def deploy(self, container, *args, **kwargs):
        self.deployments.append((container.contract_type.name, args, kwargs))
        return SimpleNamespace(address=address(len(self.deployments)))


class FakeProxyAdminContainer:
    def __init__(self):
        self.requested = list()

    def at(self, contract_address):
        self.requested.append(contract_address)
        return SimpleNamespace(address=contract_address)


@pytest.fixture
def deployment_env():
    # skips __init__, which needs a connected provider
    env = DeploymentEnvironment.__new__(DeploymentEnvironment)
    env._account = RecordingAccount(DEPLOYER)
    env._autosign = True
    env.verify = False
    return env


def fake_chain(monkeypatch, **provider_methods):
    provider = SimpleNamespace(**provider_methods)
    monkeypatch.setattr(environment, "chain", SimpleNamespace(provider=provider))


def test_validate_config_matching_chain(monkeypatch):
    connect(monkeypatch, "sepolia", CHAIN_ID)
    assert validate_config(CONFIG) == CHAIN_ID


def test_validate_config_chain_mismatch_on_live_network(monkeypatch):
    connect(monkeypatch, "sepolia", 11155111)
    with pytest.raises(ValueError, match="does not match"):
        validate_config(CONFIG)


def test_validate_config_chain_mismatch_allowed_locally(monkeypatch):
    connect(monkeypatch, "local", 31337)
    assert validate_config(CONFIG) == CHAIN_ID


def test_validate_config_requires_artifact_filename(monkeypatch):
    connect(monkeypatch, "local", CHAIN_ID)
    with pytest.raises(ValueError, match="artifact filename"):
        validate_config({"deployment": {"chain_id": CHAIN_ID}})


def test_signers_deployer_first_on_local_network(monkeypatch, deployment_env):
    test_accounts = [
        SimpleNamespace(address=OTHER_SIGNER),
        SimpleNamespace(address=DEPLOYER),
        SimpleNamespace(address=address(7)),
    ]
    monkeypatch.setattr(environment, "is_local_network", lambda: True)
    monkeypatch.setattr(environment, "accounts", SimpleNamespace(test_accounts=test_accounts))

    signers = deployment_env.get_signers()

    assert [s.address for s in signers] == [DEPLOYER, OTHER_SIGNER, address(7)]


def test_signers_only_deployer_on_live_network(monkeypatch, deployment_env):
    monkeypatch.setattr(environment, "is_local_network", lambda: False)
    test_accounts = [SimpleNamespace(address=OTHER_SIGNER)]
    monkeypatch.setattr(environment, "accounts", SimpleNamespace(test_accounts=test_accounts))

    assert [s.address for s in deployment_env.get_signers()] == [DEPLOYER]


def test_proxy_admin_from_admin_slot(monkeypatch, deployment_env):
    admin_address = address(0xADA)
    reads = list()

    def get_storage(address, slot):
        reads.append((address, slot))
        return bytes(12) + bytes.fromhex(admin_address[2:])

    fake_chain(monkeypatch, get_storage=get_storage)
    admin_container = FakeProxyAdminContainer()
    containers = {PROXY_ADMIN_CONTRACT: admin_container}
    monkeypatch.setattr(deployment_env, "get_proxy_container", containers.__getitem__)

    proxy_admin = deployment_env.get_proxy_admin(address(1))

    assert reads == [(address(1), EIP1967_ADMIN_SLOT)]
    assert admin_container.requested == [admin_address]
    assert proxy_admin.address == admin_address


def test_proxy_admin_empty_slot(monkeypatch, deployment_env):
    fake_chain(monkeypatch, get_storage=lambda address, slot: bytes(32))

    with pytest.raises(ValueError, match="Admin slot .* is empty"):
        deployment_env.get_proxy_admin(address(1))


def test_is_deployed_checks_code_on_local_network(monkeypatch, deployment_env):
    code = {address(1): b"\x60\x80"}
    fake_chain(monkeypatch, get_code=lambda contract_address: code.get(contract_address, b""))
    monkeypatch.setattr(environment, "is_local_network", lambda: True)

    assert deployment_env.is_deployed(address(1))
    assert not deployment_env.is_deployed(address(2))


def test_is_deployed_trusts_registry_on_live_network(monkeypatch, deployment_env):
    def get_code(contract_address):
        raise AssertionError("no code lookups on live networks")

    fake_chain(monkeypatch, get_code=get_code)
    monkeypatch.setattr(environment, "is_local_network", lambda: False)

    assert deployment_env.is_deployed(address(2))


@pytest.mark.parametrize("verify", [True, False])
def test_deploy_publishes_when_verifying(deployment_env, verify):
    deployment_env.verify = verify
    params = OrderedDict({"_logic": address(1), "initialOwner": DEPLOYER, "_data": b""})

    deployment_env.deploy(FakeContainer("TransparentUpgradeableProxy"), params)

    assert deployment_env.get_account().deployments == [
        ("TransparentUpgradeableProxy", (address(1), DEPLOYER, b""), {"publish": verify})
    ]
