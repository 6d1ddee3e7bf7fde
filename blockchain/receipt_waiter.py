"""
Receipt Waiter
Waits for a creation transaction to be mined and accepted
"""

import asyncio
from typing import Optional
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound, Web3RPCError
from loguru import logger

from deployer.errors import ConnectionLost, DeploymentFailed
from deployer.models import DeploymentResult, PendingDeployment
from utils.rpc_manager import CONNECTION_ERRORS


# JSON-RPC errors (rate limits, unknown block headers) mean the node cannot answer
NODE_ERRORS = CONNECTION_ERRORS + (Web3RPCError,)


class ReceiptWaiter:
    """
    Polls the node for the deployment receipt

    Waits as long as the network takes unless a timeout is configured.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        confirmations: int = 1,
        poll_interval: float = 4.0,
        timeout: Optional[float] = None
    ):
        """
        Initialize Receipt Waiter

        Args:
            w3: AsyncWeb3 instance
            confirmations: Blocks the receipt must be buried under (1 = mined)
            poll_interval: Seconds between receipt polls
            timeout: Optional bound on the whole wait (None = unbounded)
        """
        self.w3 = w3
        self.confirmations = confirmations
        self.poll_interval = poll_interval
        self.timeout = timeout

    async def wait_for_deployment(self, pending: PendingDeployment) -> DeploymentResult:
        """
        Suspend until the deployment is confirmed

        Args:
            pending: Broadcast creation transaction

        Returns:
            DeploymentResult

        Raises:
            DeploymentFailed: Reverted, dropped, or timeout exceeded
            ConnectionLost: Node stopped answering
        """
        logger.info("Waiting for confirmation...")

        if self.timeout is None:
            receipt = await self._wait_for_receipt(pending)
        else:
            try:
                receipt = await asyncio.wait_for(self._wait_for_receipt(pending), self.timeout)
            except asyncio.TimeoutError as e:
                raise DeploymentFailed(
                    f"Transaction {pending.tx_hash} not confirmed within {self.timeout}s"
                ) from e

        return DeploymentResult(
            contract_name=pending.contract_name,
            deployer_address=pending.sender,
            deployed_address=receipt['contractAddress'],
            tx_hash=pending.tx_hash,
            block_number=receipt['blockNumber'],
            gas_used=receipt['gasUsed'],
        )

    async def _wait_for_receipt(self, pending: PendingDeployment):
        while True:
            receipt = await self._get_receipt(pending)

            if receipt is None:
                await self._check_not_dropped(pending)
            else:
                self._check_receipt(receipt, pending)

                if await self._has_enough_confirmations(receipt):
                    logger.debug(
                        f"Receipt for {pending.tx_hash} in block {receipt['blockNumber']}"
                    )
                    return receipt

            await asyncio.sleep(self.poll_interval)

    async def _get_receipt(self, pending: PendingDeployment):
        try:
            return await self.w3.eth.get_transaction_receipt(pending.tx_hash)
        except TransactionNotFound:
            return None
        except NODE_ERRORS as e:
            raise ConnectionLost(
                f"Connection lost while waiting for {pending.tx_hash}: {e}"
            ) from e

    def _check_receipt(self, receipt, pending: PendingDeployment):
        if receipt['status'] != 1:
            raise DeploymentFailed(
                f"Transaction {pending.tx_hash} reverted in block {receipt['blockNumber']} "
                f"(gas used: {receipt['gasUsed']})"
            )

        if not receipt.get('contractAddress'):
            raise DeploymentFailed(
                f"Transaction {pending.tx_hash} did not create a contract"
            )

    async def _has_enough_confirmations(self, receipt) -> bool:
        if self.confirmations <= 1:
            return True

        try:
            current_block = await self.w3.eth.block_number
        except NODE_ERRORS as e:
            raise ConnectionLost(f"Connection lost while counting confirmations: {e}") from e

        depth = current_block - receipt['blockNumber'] + 1
        logger.debug(f"Confirmations: {depth}/{self.confirmations}")
        return depth >= self.confirmations

    async def _check_not_dropped(self, pending: PendingDeployment):
        """Fail when the node forgot the transaction and its nonce was used by another"""
        try:
            await self.w3.eth.get_transaction(pending.tx_hash)
            return
        except TransactionNotFound:
            pass
        except NODE_ERRORS as e:
            raise ConnectionLost(
                f"Connection lost while waiting for {pending.tx_hash}: {e}"
            ) from e

        try:
            mined_nonce = await self.w3.eth.get_transaction_count(pending.sender, 'latest')
        except NODE_ERRORS as e:
            raise ConnectionLost(
                f"Connection lost while waiting for {pending.tx_hash}: {e}"
            ) from e

        if mined_nonce <= pending.nonce:
            return

        # Mined between the receipt poll and the nonce check
        if await self._get_receipt(pending) is not None:
            return

        raise DeploymentFailed(
            f"Transaction {pending.tx_hash} was dropped or replaced "
            f"(nonce {pending.nonce} already used by {pending.sender})"
        )
