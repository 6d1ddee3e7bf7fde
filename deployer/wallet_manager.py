"""
Wallet Manager
Resolves the account that signs and pays for the deployment
"""

from typing import Optional
from web3 import AsyncWeb3, Web3
from web3.exceptions import Web3Exception
from eth_account import Account
from loguru import logger

from utils.rpc_manager import CONNECTION_ERRORS
from .errors import ConnectionLost, NoSignerAvailable
from .models import Signer


class WalletManager:
    """
    Provides the deployer signer

    A configured private key wins; otherwise the first account unlocked
    on the node is used.
    """

    def __init__(self, w3: AsyncWeb3, private_key: Optional[str] = None):
        """
        Initialize wallet manager

        Args:
            w3: AsyncWeb3 instance
            private_key: Hex private key of the deployer (None = use node accounts)
        """
        self.w3 = w3
        self._private_key = private_key

    async def get_signer(self) -> Signer:
        """
        Resolve exactly one signer

        Returns:
            Signer

        Raises:
            NoSignerAvailable: No usable account
            ConnectionLost: Node unreachable while listing accounts
        """
        if self._private_key:
            return self._local_signer()

        return await self._node_signer()

    def _local_signer(self) -> Signer:
        try:
            account = Account.from_key(self._private_key)
        except (ValueError, TypeError) as e:
            # Never echo the key itself
            raise NoSignerAvailable(
                f"DEPLOYER_PRIVATE_KEY is not a valid private key ({type(e).__name__})"
            ) from e

        logger.debug(f"Using local signer {account.address}")
        return Signer(address=account.address, account=account)

    async def _node_signer(self) -> Signer:
        try:
            accounts = await self.w3.eth.accounts
        except CONNECTION_ERRORS as e:
            raise ConnectionLost(f"Connection lost while listing node accounts: {e}") from e
        except Web3Exception as e:
            raise NoSignerAvailable(f"Node refused to list accounts: {e}") from e

        if not accounts:
            raise NoSignerAvailable(
                "No accounts available: set DEPLOYER_PRIVATE_KEY or unlock an account on the node"
            )

        address = Web3.to_checksum_address(accounts[0])
        logger.debug(f"Using node-managed signer {address}")
        return Signer(address=address)
