import typing
from collections import OrderedDict
from pathlib import Path
from typing import Any, List

from ape import accounts, chain, networks, project
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.utils import EMPTY_BYTES32
from ape_accounts import KeyfileAccount
from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address
from ethpm_types import MethodABI
from web3.auto import w3

from credit_deployment.confirm import _confirm_resolution, _continue
from credit_deployment.constants import (
    EIP1967_ADMIN_SLOT,
    OZ_DEPENDENCY_NAME,
    OZ_DEPENDENCY_VERSION,
    PROXY_ADMIN_CONTRACT,
)
from credit_deployment.registry import DeploymentRegistry
from credit_deployment.utils import (
    _load_yaml,
    check_plugins,
    get_artifact_filepath,
    get_contract_container,
    is_local_network,
    validate_config,
)


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = OrderedDict()
        for position, (arg, abi_input) in enumerate(zip(args, abi.inputs)):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name or f"arg{position}"] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        if isinstance(self._account, KeyfileAccount):
            # test accounts always sign
            self._account.set_autosign(autosign)

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        return method(*args, sender=self._account)


class DeploymentEnvironment(Transactor):
    """
    The runtime handle handed to each migration: the deployer account,
    the deployment registry of the connected chain and access to compiled artifacts.
    """

    def __init__(
        self,
        config: typing.Dict,
        path: Path,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
        verify: typing.Optional[bool] = None,
    ):
        super().__init__(account, autosign)

        self.path = path
        self.config = config
        self.verify = bool(config.get("verify", False)) if verify is None else verify
        check_plugins(verify=self.verify)

        self.chain_id = validate_config(config=self.config)
        self.registry = DeploymentRegistry(
            filepath=get_artifact_filepath(config=self.config), chain_id=self.chain_id
        )

        self._print_deployment_info()

        if not self._autosign:
            # Confirms the start of the deployment.
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "DeploymentEnvironment":
        config = _load_yaml(filepath)
        return cls(config=config, path=filepath, *args, **kwargs)

    def get_signers(self) -> List[AccountAPI]:
        """Returns the available signers, deployer first."""
        signers = [self.get_account()]
        if is_local_network():
            deployer_address = self.get_account().address
            signers.extend(a for a in accounts.test_accounts if a.address != deployer_address)
        return signers

    def get_contract_container(self, contract_name: str) -> ContractContainer:
        return get_contract_container(contract_name)

    def get_proxy_container(self, contract_name: str) -> ContractContainer:
        """Returns a proxy related container from the OpenZeppelin dependency."""
        oz_dependency = project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]
        return getattr(oz_dependency, contract_name)

    def read_artifact(self, contract_name: str) -> ABI:
        """Returns the compiled ABI of a contract as JSON-compatible dicts."""
        contract_container = self.get_contract_container(contract_name)
        contract_abi = list()
        for entry in contract_container.contract_type.abi:
            contract_abi.append(entry.model_dump(mode="json", by_alias=True, exclude_none=True))
        return contract_abi

    def deploy(
        self, container: ContractContainer, params: typing.Optional[OrderedDict] = None
    ) -> ContractInstance:
        contract_name = container.contract_type.name
        params = params or OrderedDict()
        if not self._autosign:
            _confirm_resolution(params, contract_name)

        return self.get_account().deploy(container, *params.values(), publish=self.verify)

    def is_deployed(self, address: ChecksumAddress) -> bool:
        """
        Returns False when a local chain has no code at `address`, as happens once
        the local node restarts and the recorded deployments no longer exist.
        Live networks are trusted to keep what the registry recorded.
        """
        if not is_local_network():
            return True
        return bool(chain.provider.get_code(address))

    def get_proxy_admin(self, proxy_address: ChecksumAddress) -> ContractInstance:
        """Returns the ProxyAdmin recorded in the EIP1967 admin slot of a proxy."""
        admin_slot = chain.provider.get_storage(address=proxy_address, slot=EIP1967_ADMIN_SLOT)

        if admin_slot == EMPTY_BYTES32:
            raise ValueError(
                f"Admin slot for contract at {proxy_address} is empty. "
                "Are you sure this is an EIP1967-compatible proxy?"
            )

        admin_address = to_checksum_address(admin_slot[-20:])
        return self.get_proxy_container(PROXY_ADMIN_CONTRACT).at(admin_address)

    def _print_deployment_info(self):
        print(
            f"Account: {self.get_account().address}",
            f"Config: {self.path}",
            f"Registry: {self.registry.filepath}",
            f"Verify: {self.verify}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )
