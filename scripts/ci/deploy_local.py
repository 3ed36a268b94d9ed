#!/usr/bin/python3
import filecmp
import shutil

from ape import accounts, networks

from credit_deployment.constants import CONFIGS_DIR
from credit_deployment.environment import DeploymentEnvironment
from credit_deployment.migrations import run_migrations

CONFIG_FILEPATH = CONFIGS_DIR / "ci.yml"


def main():
    """
    Deploys every migration twice on a throwaway local chain and checks
    that the second run leaves the registry untouched.
    """
    with networks.ethereum.local.use_provider("test"):
        test_account = accounts.test_accounts[0]

        env = DeploymentEnvironment.from_yaml(
            filepath=CONFIG_FILEPATH,
            account=test_account,
            autosign=True,
            verify=False,
        )
        registry_filepath = env.registry.filepath
        if registry_filepath.exists():
            registry_filepath.unlink()

        first_run = run_migrations(env)
        snapshot = registry_filepath.with_suffix(".first.json")
        shutil.copy(registry_filepath, snapshot)

        second_run = run_migrations(env)

    assert first_run == second_run
    assert filecmp.cmp(snapshot, registry_filepath, shallow=False)

    # remove created files
    snapshot.unlink()
    registry_filepath.unlink()
