import typing
from collections import OrderedDict
from typing import Any, Callable, List, NamedTuple, Optional, Tuple

from eth_typing import ChecksumAddress

from credit_deployment import proxy
from credit_deployment.constants import (
    ORACLE_TAG,
    REGISTRY_TAG,
    RESERVE_REGISTRY,
    RESERVE_TAG,
    RISK_ORACLE,
    STABLE_CREDIT_REGISTRY,
    SUPPORTED_TAGS,
)
from credit_deployment.environment import DeploymentEnvironment


def _deploy_once(
    env: DeploymentEnvironment,
    contract_name: str,
    get_args: Callable[[DeploymentEnvironment], List[Any]],
) -> ChecksumAddress:
    """Deploys a proxied contract unless the registry already holds it."""
    entry = env.registry.get_or_null(contract_name)
    if entry is not None and entry.address:
        if env.is_deployed(entry.address):
            print(f"(i) Reusing {contract_name} at {entry.address}")
            return entry.address
        print(f"(i) No code at recorded {contract_name} address {entry.address}; redeploying.")

    abi = env.read_artifact(contract_name)
    args = get_args(env)
    return proxy.deploy_proxy_and_save(contract_name, args, env, abi)


def _risk_oracle_args(env: DeploymentEnvironment) -> List[Any]:
    # initial operator
    return [env.get_signers()[0].address]


def _no_args(env: DeploymentEnvironment) -> List[Any]:
    return []


def deploy_risk_oracle(env: DeploymentEnvironment) -> ChecksumAddress:
    return _deploy_once(env, RISK_ORACLE, _risk_oracle_args)


def deploy_stable_credit_registry(env: DeploymentEnvironment) -> ChecksumAddress:
    return _deploy_once(env, STABLE_CREDIT_REGISTRY, _no_args)


def deploy_reserve_registry(env: DeploymentEnvironment) -> ChecksumAddress:
    return _deploy_once(env, RESERVE_REGISTRY, _no_args)


class Migration(NamedTuple):
    name: str
    tags: Tuple[str, ...]
    run: Callable[[DeploymentEnvironment], ChecksumAddress]


MIGRATIONS = [
    Migration(name=RISK_ORACLE, tags=(ORACLE_TAG,), run=deploy_risk_oracle),
    Migration(name=STABLE_CREDIT_REGISTRY, tags=(REGISTRY_TAG,), run=deploy_stable_credit_registry),
    Migration(name=RESERVE_REGISTRY, tags=(RESERVE_TAG,), run=deploy_reserve_registry),
]


def select_migrations(
    tags: Optional[typing.Iterable[str]] = None, migrations: Optional[List[Migration]] = None
) -> List[Migration]:
    """Returns the migrations carrying any of the given tags, in order. No tags selects all."""
    migrations = MIGRATIONS if migrations is None else migrations
    tags = set(tags or ())
    if not tags:
        return list(migrations)

    known_tags = {tag for migration in migrations for tag in migration.tags}
    unknown_tags = tags - known_tags
    if unknown_tags:
        raise ValueError(
            f"Unknown migration tag(s) {sorted(unknown_tags)}; expected one of {SUPPORTED_TAGS}"
        )

    return [m for m in migrations if tags.intersection(m.tags)]


def run_migrations(
    env: DeploymentEnvironment,
    tags: Optional[typing.Iterable[str]] = None,
    migrations: Optional[List[Migration]] = None,
) -> typing.Dict[str, ChecksumAddress]:
    """Runs the selected migrations in order and returns the canonical address of each."""
    addresses = OrderedDict()
    for migration in select_migrations(tags=tags, migrations=migrations):
        print(f"\n--- {migration.name} [{', '.join(migration.tags)}]")
        addresses[migration.name] = migration.run(env)
    return addresses
