"""
Deployment Models
Immutable values passed between pipeline stages
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from web3 import Web3


class PipelineState(Enum):
    """Stages of a single deployment run"""
    START = 'start'
    SIGNER_RESOLVED = 'signer_resolved'
    FACTORY_RESOLVED = 'factory_resolved'
    SUBMITTED = 'submitted'
    CONFIRMED = 'confirmed'
    REPORTED_SUCCESS = 'reported_success'
    REPORTED_FAILURE = 'reported_failure'


@dataclass(frozen=True)
class Signer:
    """
    Deploying account

    account holds an eth_account LocalAccount when the key is local,
    None when the node signs for an unlocked account.
    """
    address: str
    account: Any = field(default=None, repr=False, compare=False)

    @property
    def is_local(self) -> bool:
        return self.account is not None


@dataclass(frozen=True)
class DeploymentRequest:
    contract_name: str
    deployer: Signer


@dataclass(frozen=True)
class ContractFactory:
    """Compiled artifact bound to the signer that will deploy it"""
    contract_name: str
    abi: List[Dict]
    bytecode: str
    signer: Signer
    contract: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class PendingDeployment:
    """Broadcast creation transaction that has not been confirmed yet"""
    contract_name: str
    tx_hash: str
    sender: str
    nonce: int


@dataclass(frozen=True)
class DeploymentResult:
    """
    Confirmed deployment

    Only built from a receipt that reports success; an unconfirmed
    result cannot be constructed.
    """
    contract_name: str
    deployer_address: str
    deployed_address: str
    tx_hash: str
    block_number: int
    gas_used: int
    confirmed: bool = True

    def __post_init__(self):
        if not self.confirmed:
            raise ValueError("DeploymentResult requires a confirmed transaction")

        if not self.deployed_address or not Web3.is_address(self.deployed_address):
            raise ValueError(f"Invalid deployed address: {self.deployed_address!r}")

        object.__setattr__(
            self, 'deployed_address', Web3.to_checksum_address(self.deployed_address)
        )


@dataclass(frozen=True)
class PipelineOutcome:
    """Terminal state of a run: exactly one of result or error is set"""
    result: Optional[DeploymentResult] = None
    error: Optional[BaseException] = None

    def __post_init__(self):
        if (self.result is None) == (self.error is None):
            raise ValueError("PipelineOutcome needs exactly one of result or error")

    @property
    def succeeded(self) -> bool:
        return self.result is not None
