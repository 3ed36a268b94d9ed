import json
from collections import OrderedDict, defaultdict
from enum import Enum
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_typing import ABI

from credit_deployment.utils import _load_json

ChainId = int
ContractName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryEntry(NamedTuple):
    """Represents a single deployed contract in a registry."""

    chain_id: ChainId
    name: ContractName
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: str
    implementation: Optional[ChecksumAddress] = None


def _entry_data(entry: RegistryEntry) -> Dict:
    entry_abi = list(entry.abi)
    entry_abi.sort(key=lambda d: (d["type"], d.get("name", "")))

    data = {
        "address": entry.address,
        "abi": entry_abi,
        "tx_hash": entry.tx_hash,
        "block_number": int(entry.block_number),
        "deployer": entry.deployer,
    }
    if entry.implementation:
        data["implementation"] = entry.implementation
    return data


def _registry_data(entries: List[RegistryEntry]) -> Dict[str, Dict]:
    # Sort registry entries to enforce common order
    entries = sorted(entries, key=lambda entry: (str(entry.chain_id), entry.name))

    data = defaultdict(dict)
    for entry in entries:
        data[str(entry.chain_id)][entry.name] = _entry_data(entry)
    return data


def _dump(data: Dict, filepath: Path) -> None:
    """Writes to a sibling file and renames it over `filepath`; a failed write leaves it intact."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_filepath = filepath.with_suffix(".temp.json")
    try:
        with open(temp_filepath, "w") as file:
            json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)
        temp_filepath.replace(filepath)
    finally:
        temp_filepath.unlink(missing_ok=True)


def read_registry(filepath: Path) -> List[RegistryEntry]:
    data = _load_json(filepath)
    registry_entries = list()
    for chain_id, entries in data.items():
        for contract_name, artifacts in entries.items():
            registry_entry = RegistryEntry(
                chain_id=int(chain_id),
                name=contract_name,
                address=artifacts["address"],
                abi=artifacts["abi"],
                tx_hash=artifacts["tx_hash"],
                block_number=artifacts["block_number"],
                deployer=artifacts["deployer"],
                implementation=artifacts.get("implementation"),
            )
            registry_entries.append(registry_entry)
    return registry_entries


def write_registry(entries: List[RegistryEntry], filepath: Path, silent: bool = False) -> Path:
    """Writes a contract registry to a file."""

    if not entries:
        print("No entries provided.")
        return filepath

    data = _registry_data(entries)

    # If the file already exists, attempt to merge the data, if not create a new file
    if filepath.exists():
        if not silent:
            print(f"Updating existing registry at {filepath}.")
        existing_data = _load_json(filepath)

        if any(chain_id in existing_data for chain_id in data):
            filepath = filepath.with_suffix(".unmerged.json")
            if not silent:
                print(
                    "Cannot merge registries with overlapping chain IDs.\n"
                    f"Writing to {filepath} to avoid overwriting existing data."
                )
        else:
            existing_data.update(data)
            data = existing_data
    elif not silent:
        print(f"Creating new registry at {filepath}.")

    _dump(data, filepath)
    return filepath


class DeploymentRegistry:
    """
    Persisted mapping of contract name to its canonical deployment on a single chain.

    Every save is written to disk immediately so an interrupted deployment
    can be resumed by running it again.
    """

    def __init__(self, filepath: Path, chain_id: ChainId):
        self.filepath = filepath
        self.chain_id = int(chain_id)

    def _load(self) -> Dict[str, Dict]:
        if not self.filepath.exists():
            return dict()
        return _load_json(self.filepath)

    def entries(self) -> List[RegistryEntry]:
        """Returns the entries recorded for this registry's chain."""
        if not self.filepath.exists():
            return list()
        return [e for e in read_registry(self.filepath) if e.chain_id == self.chain_id]

    def get_or_null(self, name: ContractName) -> Optional[RegistryEntry]:
        for entry in self.entries():
            if entry.name == name:
                return entry
        return None

    def __contains__(self, name: ContractName) -> bool:
        return self.get_or_null(name) is not None

    def save(self, entry: RegistryEntry) -> None:
        if int(entry.chain_id) != self.chain_id:
            raise ValueError(
                f"Cannot save {entry.name} for chain {entry.chain_id} "
                f"into a registry for chain {self.chain_id}."
            )

        data = self._load()
        chain_entries = data.setdefault(str(self.chain_id), dict())
        previous = chain_entries.get(entry.name)
        if previous and previous["address"] != entry.address:
            print(
                f"(i) Replacing {entry.name} record at {previous['address']} "
                f"with {entry.address}."
            )
        chain_entries[entry.name] = _entry_data(entry)
        data[str(self.chain_id)] = OrderedDict(sorted(chain_entries.items()))

        _dump(dict(sorted(data.items())), self.filepath)


class ConflictResolution(Enum):
    USE_1 = 1
    USE_2 = 2


def _select_conflict_resolution(
    registry_1_entry, registry_1_filepath, registry_2_entry, registry_2_filepath
) -> ConflictResolution:
    print(
        f"\n! Conflict detected for {registry_1_entry.name} "
        f"on chain id {registry_1_entry.chain_id}:"
    )
    print(f"[1]: {registry_1_entry.name} at {registry_1_entry.address} for {registry_1_filepath}")
    print(f"[2]: {registry_2_entry.name} at {registry_2_entry.address} for {registry_2_filepath}")
    print("[A]: Abort merge")

    valid_str_answers = [
        str(ConflictResolution.USE_1.value),
        str(ConflictResolution.USE_2.value),
        "A",
    ]
    answer = None
    while answer not in valid_str_answers:
        answer = input(f"Merge resolution, {valid_str_answers}? ")

    if answer == "A":
        print("Merge Aborted!")
        exit(-1)
    return ConflictResolution(int(answer))


def merge_registries(
    registry_1_filepath: Path,
    registry_2_filepath: Path,
    output_filepath: Path,
    deprecated_contracts: Optional[List[ContractName]] = None,
    force_conflict_resolution: Optional[ConflictResolution] = None,
) -> Path:
    """Merges two contract registries."""
    deprecated_contracts = deprecated_contracts or []

    # Read the registries, excluding deprecated contracts
    reg1 = defaultdict(OrderedDict)
    reg2 = defaultdict(OrderedDict)

    for e in read_registry(registry_1_filepath):
        if e.name in deprecated_contracts:
            continue
        reg1[e.chain_id][e.name] = e

    for e in read_registry(registry_2_filepath):
        if e.name in deprecated_contracts:
            continue
        reg2[e.chain_id][e.name] = e

    merged: List[RegistryEntry] = list()

    all_chains = set(reg1) | set(reg2)
    common_chains = set(reg1) & set(reg2)
    for chain in all_chains:
        reg1_chain_entries, reg2_chain_entries = reg1.get(chain, {}), reg2.get(chain, {})
        if chain in common_chains:
            all_contracts = set(reg1_chain_entries) | set(reg2_chain_entries)
            for name in all_contracts:
                entry_1, entry_2 = reg1_chain_entries.get(name), reg2_chain_entries.get(name)
                if entry_1 and entry_2:
                    resolution = force_conflict_resolution or _select_conflict_resolution(
                        registry_1_entry=entry_1,
                        registry_2_entry=entry_2,
                        registry_1_filepath=registry_1_filepath,
                        registry_2_filepath=registry_2_filepath,
                    )
                    selected_entry = entry_1 if resolution == ConflictResolution.USE_1 else entry_2
                else:
                    selected_entry = entry_1 or entry_2

                merged.append(selected_entry)
        else:
            selected_entries = reg1_chain_entries or reg2_chain_entries
            merged.extend(list(selected_entries.values()))

    # the output may be one of the inputs; replace it rather than merging into it
    _dump(_registry_data(merged), output_filepath)
    print(f"Merged registry output to {output_filepath}")
    return output_filepath


def normalize_registry(filepath: Path):
    """Normalizes a potentially non-standard registry file."""
    try:
        registry_entries = read_registry(filepath=filepath)
    except Exception:
        print(f"Error when reading registry at {filepath}.")
        raise

    try:
        _dump(_registry_data(registry_entries), filepath)
        print(f"Successfully normalized registry at {filepath}.")
    except Exception:
        print(f"Error when normalizing registry at {filepath}.")
        raise
