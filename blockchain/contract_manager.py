"""
Contract Manager
Resolves compiled Hardhat artifacts into deployable contract factories
"""

import json
from pathlib import Path
from typing import Dict, List
from web3 import AsyncWeb3
from loguru import logger

from deployer.errors import ArtifactNotFound, InvalidArtifact
from deployer.models import ContractFactory, Signer


class ContractManager:
    """
    Looks up compiled artifacts by contract name

    Layout follows Hardhat: artifacts/contracts/<Source>.sol/<Name>.json,
    with <Name>.dbg.json and build-info/ alongside.
    """

    def __init__(self, w3: AsyncWeb3, artifacts_dir: str = 'artifacts'):
        """
        Initialize Contract Manager

        Args:
            w3: AsyncWeb3 instance the factory is bound to
            artifacts_dir: Root of the compiled artifacts
        """
        self.w3 = w3
        self.artifacts_dir = Path(artifacts_dir)

    def get_contract_factory(self, contract_name: str, signer: Signer) -> ContractFactory:
        """
        Build a deployable factory bound to the signer

        Args:
            contract_name: Bare name (TimedAuction) or fully qualified
                name (contracts/TimedAuction.sol:TimedAuction)
            signer: Deploying account

        Returns:
            ContractFactory

        Raises:
            ArtifactNotFound: No (or more than one) artifact matches
            InvalidArtifact: Artifact cannot be deployed
        """
        artifact_path = self.find_artifact(contract_name)
        artifact = self.load_artifact(artifact_path)

        abi = artifact['abi']
        bytecode = artifact['bytecode']
        name = artifact.get('contractName') or contract_name.split(':')[-1]

        try:
            contract = self.w3.eth.contract(abi=abi, bytecode=bytecode)
        except (ValueError, TypeError) as e:
            raise InvalidArtifact(f"Cannot bind {name} artifact from {artifact_path}: {e}") from e

        logger.debug(f"Loaded {name} artifact from {artifact_path}")
        return ContractFactory(
            contract_name=name,
            abi=abi,
            bytecode=bytecode,
            signer=signer,
            contract=contract,
        )

    def find_artifact(self, contract_name: str) -> Path:
        """Locate the artifact file for a contract name"""
        contract_name = (contract_name or '').strip()
        if not contract_name:
            raise ArtifactNotFound("Contract name must not be empty")

        if ':' in contract_name:
            source_name, name = contract_name.rsplit(':', 1)
            if not name or '..' in Path(source_name).parts or Path(source_name).is_absolute():
                raise ArtifactNotFound(f"Invalid fully qualified contract name \"{contract_name}\"")
            path = self.artifacts_dir / source_name / f"{name}.json"
            if not path.is_file():
                raise ArtifactNotFound(
                    f"Artifact for contract \"{contract_name}\" not found in {self.artifacts_dir}"
                )
            return path

        if '/' in contract_name or '\\' in contract_name:
            raise ArtifactNotFound(
                f"Invalid contract name \"{contract_name}\", use SourceName.sol:ContractName"
            )

        candidates = self._candidates(contract_name)

        if not candidates:
            raise ArtifactNotFound(
                f"Artifact for contract \"{contract_name}\" not found in {self.artifacts_dir}. "
                f"Compile the contracts first"
            )

        if len(candidates) > 1:
            qualified = ', '.join(self._qualified_name(p) for p in candidates)
            raise ArtifactNotFound(
                f"There are multiple artifacts for contract \"{contract_name}\", "
                f"use one of these fully qualified names: {qualified}"
            )

        return candidates[0]

    def load_artifact(self, path: Path) -> Dict:
        """Read and validate an artifact file"""
        try:
            with open(path, 'r') as f:
                artifact = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidArtifact(f"Cannot read artifact {path}: {e}") from e

        if not isinstance(artifact, dict) or 'abi' not in artifact or 'bytecode' not in artifact:
            raise InvalidArtifact(f"Artifact {path} is missing abi or bytecode")

        bytecode = artifact['bytecode']
        if not isinstance(bytecode, str) or bytecode in ('', '0x'):
            name = artifact.get('contractName', path.stem)
            raise InvalidArtifact(
                f"Contract {name} is abstract or an interface and can't be deployed"
            )

        link_references = artifact.get('linkReferences')
        if isinstance(link_references, dict) and link_references:
            libraries = ', '.join(
                sorted(lib for refs in link_references.values() for lib in refs)
            )
            raise InvalidArtifact(
                f"Contract {artifact.get('contractName', path.stem)} needs linked libraries "
                f"({libraries}) and can't be deployed without them"
            )

        return artifact

    def _candidates(self, contract_name: str) -> List[Path]:
        if not self.artifacts_dir.is_dir():
            return []

        # Compare names literally: contract names must not act as glob patterns
        file_name = f"{contract_name}.json"
        return sorted(
            path for path in self.artifacts_dir.rglob('*.json')
            if path.name == file_name
            and 'build-info' not in path.relative_to(self.artifacts_dir).parts
        )

    def _qualified_name(self, path: Path) -> str:
        source = path.parent.relative_to(self.artifacts_dir).as_posix()
        return f"{source}:{path.stem}"
