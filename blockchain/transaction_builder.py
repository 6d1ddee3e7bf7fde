"""
Transaction Builder
Builds, signs and broadcasts contract-creation transactions
"""

from typing import Dict
from web3 import AsyncWeb3, Web3
from web3.exceptions import Web3Exception
from loguru import logger

from deployer.errors import SubmissionError
from deployer.models import ContractFactory, PendingDeployment, Signer
from utils.rpc_manager import CONNECTION_ERRORS


class TransactionBuilder:
    """
    Submits deployment transactions

    Exactly one broadcast per call; failures are never retried here.
    """

    def __init__(self, w3: AsyncWeb3, gas_buffer: float = 1.2, priority_fee_gwei: float = 1.5):
        """
        Initialize Transaction Builder

        Args:
            w3: AsyncWeb3 instance
            gas_buffer: Multiplier applied to the gas estimate
            priority_fee_gwei: EIP-1559 tip in gwei
        """
        self.w3 = w3
        self.gas_buffer = gas_buffer
        self.priority_fee_gwei = priority_fee_gwei

    async def submit_deployment(self, factory: ContractFactory) -> PendingDeployment:
        """
        Send the creation transaction for a factory

        Args:
            factory: Contract factory bound to its signer

        Returns:
            PendingDeployment (not yet confirmed)

        Raises:
            SubmissionError: Build, signing or broadcast failed
        """
        signer = factory.signer

        try:
            tx = await self.build_deployment_tx(factory)
            tx_hash = await self._send(tx, signer)
        except SubmissionError:
            raise
        except CONNECTION_ERRORS as e:
            raise SubmissionError(
                f"Connection failed while submitting {factory.contract_name} deployment: {e}"
            ) from e
        except (Web3Exception, ValueError) as e:
            raise SubmissionError(
                f"{factory.contract_name} deployment rejected: {e}"
            ) from e

        logger.info(f"Transaction sent: {tx_hash}")
        return PendingDeployment(
            contract_name=factory.contract_name,
            tx_hash=tx_hash,
            sender=signer.address,
            nonce=tx['nonce'],
        )

    async def build_deployment_tx(self, factory: ContractFactory) -> Dict:
        """
        Build the unsigned creation transaction

        Args:
            factory: Contract factory bound to its signer

        Returns:
            Transaction dict
        """
        sender = factory.signer.address
        constructor = factory.contract.constructor()

        nonce = await self.w3.eth.get_transaction_count(sender, 'pending')
        chain_id = await self.w3.eth.chain_id
        fee_params = await self.get_fee_params()

        gas_estimate = await constructor.estimate_gas({'from': sender})
        gas_limit = int(gas_estimate * self.gas_buffer)

        tx = await constructor.build_transaction({
            'from': sender,
            'nonce': nonce,
            'gas': gas_limit,
            'chainId': chain_id,
            **fee_params
        })

        max_price = fee_params.get('maxFeePerGas', fee_params.get('gasPrice', 0))
        logger.info(f"Gas limit: {gas_limit}")
        logger.info(f"Max deployment cost: {Web3.from_wei(gas_limit * max_price, 'ether')} ETH")

        return tx

    async def get_fee_params(self) -> Dict[str, int]:
        """
        Fee fields for the current network

        EIP-1559 when the latest block carries a base fee, legacy gas price otherwise.
        """
        latest_block = await self.w3.eth.get_block('latest')
        base_fee_wei = latest_block.get('baseFeePerGas')

        if base_fee_wei is None:
            gas_price = await self.w3.eth.gas_price
            logger.debug(f"Legacy gas price: {Web3.from_wei(gas_price, 'gwei')} gwei")
            return {'gasPrice': gas_price}

        priority_fee_wei = int(Web3.to_wei(self.priority_fee_gwei, 'gwei'))

        # Max fee = base fee * 2 + priority fee (room for base fee growth)
        max_fee_wei = (base_fee_wei * 2) + priority_fee_wei

        return {
            'maxFeePerGas': int(max_fee_wei),
            'maxPriorityFeePerGas': priority_fee_wei
        }

    async def _send(self, tx: Dict, signer: Signer) -> str:
        if signer.is_local:
            try:
                signed_tx = signer.account.sign_transaction(tx)
            except (ValueError, TypeError) as e:
                raise SubmissionError(f"Error signing transaction: {e}") from e

            tx_hash = await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        else:
            # Node-managed account: the node signs
            tx_hash = await self.w3.eth.send_transaction(tx)

        return Web3.to_hex(tx_hash)
