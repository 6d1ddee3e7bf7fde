"""
Deployment Pipeline
Orchestrates signer -> factory -> submission -> confirmation -> report
"""

from typing import Optional
from loguru import logger

from blockchain.contract_manager import ContractManager
from blockchain.receipt_waiter import ReceiptWaiter
from blockchain.transaction_builder import TransactionBuilder
from utils.config import DeployConfig
from utils.rpc_manager import RPCManager

from .models import DeploymentRequest, DeploymentResult, PipelineOutcome, PipelineState
from .reporter import OutcomeReporter
from .wallet_manager import WalletManager


class DeploymentPipeline:
    """
    One-shot contract deployment

    Stages run strictly in order and any failure stops the run. Failures
    are caught once, in execute(), and turned into a PipelineOutcome.
    """

    def __init__(
        self,
        rpc_manager: RPCManager,
        config: DeployConfig,
        reporter: Optional[OutcomeReporter] = None,
        wallet_manager: Optional[WalletManager] = None,
        contract_manager: Optional[ContractManager] = None,
        transaction_builder: Optional[TransactionBuilder] = None,
        receipt_waiter: Optional[ReceiptWaiter] = None
    ):
        """
        Initialize Deployment Pipeline

        Args:
            rpc_manager: Node connection
            config: Deployment settings
            reporter: Outcome reporter (default writes to stdout/stderr)
            wallet_manager, contract_manager, transaction_builder, receipt_waiter:
                Stage overrides; built from config when omitted
        """
        self.rpc_manager = rpc_manager
        self.config = config
        self.reporter = reporter or OutcomeReporter(rpc_url=config.rpc_url)

        self.wallet_manager = wallet_manager
        self.contract_manager = contract_manager
        self.transaction_builder = transaction_builder
        self.receipt_waiter = receipt_waiter

        self.state = PipelineState.START
        self.request = None

    async def run(self) -> DeploymentResult:
        """
        Run every stage, raising on the first failure

        Returns:
            DeploymentResult of the confirmed deployment
        """
        w3 = await self.rpc_manager.connect()
        self._build_stages(w3)

        signer = await self.wallet_manager.get_signer()
        self.request = DeploymentRequest(contract_name=self.config.contract_name, deployer=signer)
        self.state = PipelineState.SIGNER_RESOLVED

        logger.info(
            f"Deploying {self.request.contract_name} contract with account: {signer.address}"
        )

        factory = self.contract_manager.get_contract_factory(self.request.contract_name, signer)
        self.state = PipelineState.FACTORY_RESOLVED

        pending = await self.transaction_builder.submit_deployment(factory)
        self.state = PipelineState.SUBMITTED

        result = await self.receipt_waiter.wait_for_deployment(pending)
        self.state = PipelineState.CONFIRMED

        return result

    async def execute(self) -> PipelineOutcome:
        """
        Run the pipeline and report its terminal state

        Returns:
            PipelineOutcome carrying the result or the error
        """
        try:
            result = await self.run()
        except Exception as e:
            outcome = PipelineOutcome(error=e)
        else:
            outcome = PipelineOutcome(result=result)

        self.reporter.report(outcome)
        self.state = (
            PipelineState.REPORTED_SUCCESS if outcome.succeeded
            else PipelineState.REPORTED_FAILURE
        )

        return outcome

    def _build_stages(self, w3):
        if self.wallet_manager is None:
            self.wallet_manager = WalletManager(w3, self.config.private_key)

        if self.contract_manager is None:
            self.contract_manager = ContractManager(w3, self.config.artifacts_dir)

        if self.transaction_builder is None:
            self.transaction_builder = TransactionBuilder(
                w3,
                gas_buffer=self.config.gas_buffer,
                priority_fee_gwei=self.config.priority_fee_gwei
            )

        if self.receipt_waiter is None:
            self.receipt_waiter = ReceiptWaiter(
                w3,
                confirmations=self.config.confirmations,
                poll_interval=self.config.poll_interval,
                timeout=self.config.confirmation_timeout
            )


def exit_code(outcome: PipelineOutcome) -> int:
    """0 for a confirmed deployment, 1 for any failure"""
    return 0 if outcome.succeeded else 1
