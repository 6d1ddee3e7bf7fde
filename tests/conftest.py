"""
Shared fixtures: an in-memory async node and a Hardhat-style artifacts tree
"""

import json
from unittest.mock import AsyncMock
from types import SimpleNamespace

import pytest
from web3 import Web3
from web3.exceptions import TransactionNotFound

from utils.config import DeployConfig


DEPLOYER = '0xDEADBEEF00000000000000000000000000000000'

# Well-known Hardhat test key #0
HARDHAT_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'
HARDHAT_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'

BYTECODE = (
    '0x6080604052348015600f57600080fd5b50603f80601d6000396000f3fe'
    '6080604052600080fdfea164736f6c6343000813000a'
)

ABI = [
    {"inputs": [], "stateMutability": "nonpayable", "type": "constructor"},
    {
        "inputs": [],
        "name": "highestBid",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    }
]


class FakeConstructor:
    def __init__(self, node, bytecode):
        self.node = node
        self.bytecode = bytecode

    async def estimate_gas(self, transaction):
        self.node.calls.append('estimate_gas')
        if self.node.estimate_error is not None:
            raise self.node.estimate_error
        return self.node.gas_estimate

    async def build_transaction(self, transaction):
        tx = dict(transaction)
        tx.setdefault('value', 0)
        tx['data'] = self.bytecode
        return tx


class FakeContract:
    def __init__(self, node, abi, bytecode):
        self.node = node
        self.abi = abi
        self.bytecode = bytecode

    def constructor(self):
        return FakeConstructor(self.node, self.bytecode)


async def _resolve(value):
    if isinstance(value, BaseException):
        raise value
    return value


def _hex(transaction_hash):
    if isinstance(transaction_hash, str):
        return transaction_hash
    return Web3.to_hex(transaction_hash)


class FakeEth:
    """Subset of AsyncEth used by the deployer"""

    def __init__(self, node):
        self.node = node

    @property
    def accounts(self):
        self.node.calls.append('accounts')
        return _resolve(self.node.accounts_error or self.node.accounts)

    @property
    def chain_id(self):
        return _resolve(self.node.chain_id)

    @property
    def gas_price(self):
        return _resolve(self.node.gas_price)

    @property
    def block_number(self):
        return _resolve(self.node.block_number)

    async def get_block(self, block_identifier):
        block = {'number': self.node.block_number}
        if self.node.base_fee is not None:
            block['baseFeePerGas'] = self.node.base_fee
        return block

    async def get_balance(self, address):
        return self.node.balance

    async def get_transaction_count(self, address, block_identifier='latest'):
        sent = [tx for tx in self.node.sent if tx.get('from') == address]
        if block_identifier == 'pending':
            return len(sent)
        if self.node.drop:
            # Another transaction consumed the nonce
            return len(sent)
        return len([tx for tx in sent if tx['hash'] in self.node.receipts])

    def contract(self, abi=None, bytecode=None, address=None):
        return FakeContract(self.node, abi, bytecode)

    async def send_transaction(self, transaction):
        return self.node.broadcast(dict(transaction))

    async def send_raw_transaction(self, raw_transaction):
        return self.node.broadcast({'from': self.node.raw_sender, 'raw': raw_transaction})

    async def get_transaction_receipt(self, transaction_hash):
        self.node.calls.append('get_transaction_receipt')
        if self.node.receipt_error is not None:
            raise self.node.receipt_error

        tx_hash = _hex(transaction_hash)
        if self.node.drop or tx_hash not in self.node.pending:
            raise TransactionNotFound(f"Transaction with hash: '{tx_hash}' not found.")

        if self.node.pending_polls > 0:
            self.node.pending_polls -= 1
            raise TransactionNotFound(f"Transaction with hash: '{tx_hash}' not found.")

        return self.node.mine(tx_hash)

    async def get_transaction(self, transaction_hash):
        tx_hash = _hex(transaction_hash)
        if self.node.drop or tx_hash not in self.node.pending:
            raise TransactionNotFound(f"Transaction with hash: '{tx_hash}' not found.")
        return {'hash': tx_hash}


class FakeNode:
    """
    In-memory stand-in for AsyncWeb3

    Every broadcast creates a new contract address; receipts appear after
    pending_polls unsuccessful polls.
    """

    def __init__(self, accounts=None):
        self.accounts = [DEPLOYER] if accounts is None else list(accounts)
        self.accounts_error = None
        self.connected = True
        self.chain_id = 31337
        self.block_number = 100
        self.base_fee = None
        self.gas_price = 2_000_000_000
        self.gas_estimate = 500_000
        self.balance = 10 ** 18
        self.raw_sender = HARDHAT_ADDRESS

        self.pending_polls = 0
        self.revert = False
        self.no_contract_address = False
        self.drop = False
        self.send_error = None
        self.estimate_error = None
        self.receipt_error = None

        self.sent = []
        self.pending = {}
        self.receipts = {}
        self.calls = []

        self.eth = FakeEth(self)
        self.provider = SimpleNamespace(disconnect=AsyncMock())

    async def is_connected(self):
        return self.connected

    def broadcast(self, tx):
        self.calls.append('broadcast')
        if self.send_error is not None:
            raise self.send_error

        index = len(self.sent) + 1
        tx_hash = Web3.to_hex(index.to_bytes(32, 'big'))
        tx['hash'] = tx_hash
        self.sent.append(tx)
        self.pending[tx_hash] = Web3.to_checksum_address(f"0x{0xC0FFEE0000 + index:040x}")
        return bytes.fromhex(tx_hash[2:])

    def mine(self, tx_hash):
        if tx_hash not in self.receipts:
            self.block_number += 1
            self.receipts[tx_hash] = {
                'transactionHash': tx_hash,
                'status': 0 if self.revert else 1,
                'contractAddress': None if self.no_contract_address else self.pending[tx_hash],
                'blockNumber': self.block_number,
                'gasUsed': 123_456,
            }
        return self.receipts[tx_hash]


@pytest.fixture
def node():
    """Fake node with one unlocked account"""
    return FakeNode()


def write_artifact(root, source, name, bytecode=BYTECODE, abi=None, link_references=None):
    directory = root / source
    directory.mkdir(parents=True, exist_ok=True)
    artifact = {
        "_format": "hh-sol-artifact-1",
        "contractName": name,
        "sourceName": source,
        "abi": ABI if abi is None else abi,
        "bytecode": bytecode,
        "deployedBytecode": bytecode,
        "linkReferences": link_references or {},
        "deployedLinkReferences": {}
    }
    (directory / f"{name}.json").write_text(json.dumps(artifact))
    (directory / f"{name}.dbg.json").write_text(
        json.dumps({"_format": "hh-sol-dbg-1", "buildInfo": "../../build-info/abc.json"})
    )
    return directory / f"{name}.json"


@pytest.fixture
def artifacts_dir(tmp_path):
    """Hardhat artifacts tree containing TimedAuction"""
    root = tmp_path / 'artifacts'
    write_artifact(root, 'contracts/TimedAuction.sol', 'TimedAuction')
    build_info = root / 'build-info'
    build_info.mkdir(parents=True)
    (build_info / 'abc.json').write_text(json.dumps({"id": "abc"}))
    return root


@pytest.fixture
def config(artifacts_dir):
    """Fast-polling configuration pointing at the fixture artifacts"""
    return DeployConfig(
        contract_name='TimedAuction',
        artifacts_dir=str(artifacts_dir),
        poll_interval=0.01,
    )
