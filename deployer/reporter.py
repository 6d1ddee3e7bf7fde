"""
Outcome Reporter
Writes the result line to stdout or the failure detail to stderr
"""

import sys
import traceback
from typing import Optional, TextIO
from loguru import logger

from utils.rpc_manager import scrub_url
from .models import DeploymentResult, PipelineOutcome


class OutcomeReporter:
    """Human-readable report of a finished run"""

    def __init__(self, out: TextIO = None, err: TextIO = None, rpc_url: Optional[str] = None):
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        # Error text from the transport may quote the full endpoint URL
        self.rpc_url = rpc_url

    def report(self, outcome: PipelineOutcome):
        if outcome.succeeded:
            self.report_success(outcome.result)
        else:
            self.report_failure(outcome.error)

    def report_success(self, result: DeploymentResult):
        logger.success(f"✅ {result.contract_name} deployed successfully!")
        logger.success(f"Transaction hash: {result.tx_hash}")
        logger.success(f"Block: {result.block_number} | Gas used: {result.gas_used}")

        print(format_result(result), file=self.out, flush=True)

    def report_failure(self, error: BaseException):
        logger.error(f"❌ Deployment failed: {type(error).__name__}")

        # Full detail, chained causes included
        detail = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        print(scrub_url(f"{type(error).__name__}: {error}", self.rpc_url), file=self.err)
        print(scrub_url(detail.rstrip(), self.rpc_url), file=self.err, flush=True)


def format_result(result: DeploymentResult) -> str:
    return (
        f"{result.contract_name} deployed to: {result.deployed_address} "
        f"(deployer: {result.deployer_address})"
    )
