"""
System Check Script
Verifies configuration, node, deployer account and artifact before deploying

Read-only: never broadcasts a transaction.
Run: python -m scripts.check_system
"""

import asyncio
import sys
from typing import Optional
from web3 import Web3
from loguru import logger

from blockchain.contract_manager import ContractManager
from deployer.errors import DeploymentError
from deployer.wallet_manager import WalletManager
from utils.config import DeployConfig
from utils.rpc_manager import CONNECTION_ERRORS, RPCManager


class SystemCheck:
    """Pre-flight checks sharing one node connection"""

    def __init__(self, config: DeployConfig, rpc_manager: Optional[RPCManager] = None):
        self.config = config
        self.rpc_manager = rpc_manager or RPCManager(config.rpc_url)
        self.w3 = None
        self.signer = None

    async def check_rpc_connection(self) -> bool:
        """Check the node answers"""
        logger.info("Checking RPC connection...")

        try:
            self.w3 = await self.rpc_manager.connect()
            block = await self.w3.eth.block_number
        except (DeploymentError, *CONNECTION_ERRORS) as e:
            logger.error(f"  ✗ {self.rpc_manager.endpoint}: {self.rpc_manager.scrub(str(e))}")
            return False

        logger.success(
            f"  ✓ {self.rpc_manager.endpoint}: Connected "
            f"(Chain: {self.rpc_manager.chain_id}, Block: {block})"
        )
        return True

    async def check_deployer_account(self) -> bool:
        """Check a signer resolves and holds funds for gas"""
        logger.info("Checking deployer account...")

        if self.w3 is None:
            logger.warning("  No RPC connection - skipping account check")
            return False

        try:
            self.signer = await WalletManager(self.w3, self.config.private_key).get_signer()
            balance = await self.w3.eth.get_balance(self.signer.address)
        except (DeploymentError, *CONNECTION_ERRORS) as e:
            logger.error(f"  ✗ {self.rpc_manager.scrub(str(e))}")
            return False

        source = "local key" if self.signer.is_local else "node account"
        logger.info(f"  Deployer: {self.signer.address} ({source})")
        logger.info(f"  Balance: {Web3.from_wei(balance, 'ether'):.4f} ETH")

        if balance == 0:
            logger.error("  ✗ Deployer has no funds for gas")
            return False

        logger.success("  ✓ Deployer account ready")
        return True

    def check_artifact(self) -> bool:
        """Check the configured contract resolves to a deployable artifact"""
        logger.info("Checking contract artifact...")

        manager = ContractManager(self.w3, self.config.artifacts_dir)

        try:
            path = manager.find_artifact(self.config.contract_name)
            manager.load_artifact(path)
        except DeploymentError as e:
            logger.error(f"  ✗ {e}")
            return False

        logger.success(f"  ✓ {self.config.contract_name}: {path}")
        return True

    async def run(self) -> int:
        """Run all checks, 0 when every check passes"""
        logger.info("=" * 70)
        logger.info("Deployment System Check")
        logger.info("=" * 70)

        try:
            results = [
                ("RPC Connection", await self.check_rpc_connection()),
                ("Deployer Account", await self.check_deployer_account()),
                ("Contract Artifact", self.check_artifact()),
            ]
        finally:
            await self.rpc_manager.close()

        logger.info("")
        passed = sum(1 for _, result in results if result)

        for name, result in results:
            status = "✓ PASS" if result else "✗ FAIL"
            logger.info(f"  {status}: {name}")

        logger.info(f"Total: {passed}/{len(results)} checks passed")

        if passed == len(results):
            logger.success("✅ Ready to deploy: python deploy.py")
            return 0

        logger.error("❌ Not ready - fix issues above")
        return 1


def main():
    """Run all system checks"""
    try:
        config = DeployConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    return asyncio.run(SystemCheck(config).run())


if __name__ == "__main__":
    sys.exit(main())
