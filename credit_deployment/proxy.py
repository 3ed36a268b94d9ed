import typing
from collections import OrderedDict
from typing import Any, List

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from ethpm_types import MethodABI
from eth_typing import ABI

from credit_deployment.constants import DEFAULT_INITIALIZER, PROXY_CONTRACT
from credit_deployment.environment import DeploymentEnvironment, _validate_method_args
from credit_deployment.registry import RegistryEntry


class InitializerArguments:
    """Initializer arguments of an upgradeable contract, validated against its ABI."""

    class Invalid(Exception):
        """Raised when the initializer arguments do not match the ABI"""

    def __init__(self, contract_name: str, abi: ABI, initializer: str, args: List[Any]):
        self.contract_name = contract_name
        self.initializer = initializer
        self.args = list(args)
        self.method_abis = _initializer_abis(abi, initializer)
        self.named_args = self._validate()

    def _validate(self) -> OrderedDict:
        if not self.method_abis:
            if self.args:
                raise self.Invalid(
                    f"{self.contract_name} has no '{self.initializer}' function "
                    f"but {len(self.args)} initializer arg(s) were provided."
                )
            return OrderedDict()

        try:
            named_args = _validate_method_args(method_abis=self.method_abis, args=self.args)
        except ValueError as e:
            raise self.Invalid(f"{self.contract_name}: {e}") from e
        return OrderedDict(named_args)

    @property
    def needs_call(self) -> bool:
        return bool(self.method_abis)

    def encode(self, implementation) -> bytes:
        """Encodes the initializer call data for the proxy constructor."""
        if not self.needs_call:
            return b""
        method_handler = getattr(implementation, self.initializer)
        return method_handler.encode_input(*self.args)


def _initializer_abis(abi: ABI, initializer: str) -> List[MethodABI]:
    return [
        MethodABI.model_validate(entry)
        for entry in abi
        if entry.get("type") == "function" and entry.get("name") == initializer
    ]


def _registry_entry(
    name: str,
    proxy,
    implementation,
    abi: ABI,
    chain_id: int,
) -> RegistryEntry:
    receipt = proxy.receipt
    return RegistryEntry(
        chain_id=chain_id,
        name=name,
        address=to_checksum_address(proxy.address),
        abi=list(abi),
        tx_hash=receipt.txn_hash,
        block_number=receipt.block_number,
        deployer=receipt.transaction.sender,
        implementation=to_checksum_address(implementation.address),
    )


def deploy_proxy_and_save(
    name: str,
    constructor_args: typing.Sequence[Any],
    env: DeploymentEnvironment,
    abi: ABI,
    initializer: str = DEFAULT_INITIALIZER,
) -> ChecksumAddress:
    """
    Deploys the implementation of an upgradeable contract and a proxy in front of it,
    then records the proxy under `name` in the deployment registry.

    The constructor arguments of an upgradeable contract are passed to its
    initializer through the proxy constructor; the implementation itself is deployed bare.
    """
    arguments = InitializerArguments(
        contract_name=name, abi=abi, initializer=initializer, args=list(constructor_args)
    )
    if arguments.named_args:
        pretty_args = "\n\t".join(f"{k}={v}" for k, v in arguments.named_args.items())
        print(f"\n{name}.{initializer} arguments:\n\t{pretty_args}")

    container = env.get_contract_container(name)
    implementation = env.deploy(container)

    proxy_container = env.get_proxy_container(PROXY_CONTRACT)
    print(f"\nDeploying {PROXY_CONTRACT} contract to proxy {name}.")
    proxy_params = OrderedDict(
        {
            "_logic": implementation.address,
            "initialOwner": env.get_account().address,
            "_data": arguments.encode(implementation),
        }
    )
    proxy = env.deploy(proxy_container, proxy_params)

    entry = _registry_entry(
        name=name, proxy=proxy, implementation=implementation, abi=abi, chain_id=env.chain_id
    )
    env.registry.save(entry)
    print(f"(i) {name} deployed at {entry.address} (implementation {entry.implementation}).")
    return entry.address


def upgrade_proxy_and_save(
    name: str,
    env: DeploymentEnvironment,
    abi: ABI,
    call_data: bytes = b"",
) -> ChecksumAddress:
    """
    Deploys a new implementation for an already proxied contract and points the proxy at it.
    The proxy address recorded under `name` does not change.
    """
    entry = env.registry.get_or_null(name)
    if entry is None:
        raise ValueError(f"{name} is not deployed on chain {env.chain_id}; nothing to upgrade.")
    if not entry.implementation:
        raise ValueError(f"{name} at {entry.address} is not recorded as a proxy.")

    container = env.get_contract_container(name)
    implementation = env.deploy(container)

    proxy_admin = env.get_proxy_admin(entry.address)
    receipt = env.transact(
        proxy_admin.upgradeAndCall, entry.address, implementation.address, call_data
    )

    upgraded_entry = entry._replace(
        abi=list(abi),
        tx_hash=receipt.txn_hash,
        block_number=receipt.block_number,
        implementation=to_checksum_address(implementation.address),
    )
    env.registry.save(upgraded_entry)
    print(f"(i) {name} at {entry.address} upgraded to implementation {implementation.address}.")
    return entry.address
