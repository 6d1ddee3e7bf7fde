"""
Contract Deployment - Main Entry Point
Deploys the configured contract artifact and prints its address
"""

import asyncio
import sys
from typing import Optional, TextIO
from loguru import logger

from deployer.models import PipelineOutcome
from deployer.pipeline import DeploymentPipeline, exit_code
from deployer.reporter import OutcomeReporter
from utils.config import DeployConfig
from utils.rpc_manager import RPCManager


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Log to stderr (stdout is reserved for the result line)"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level
    )
    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


async def deploy(
    config: DeployConfig,
    rpc_manager: Optional[RPCManager] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None
) -> PipelineOutcome:
    """
    Run one deployment

    Args:
        config: Deployment settings
        rpc_manager: Node connection (None = connect to config.rpc_url)
        out: Stream for the result line
        err: Stream for failure detail

    Returns:
        PipelineOutcome
    """
    rpc_manager = rpc_manager or RPCManager(config.rpc_url)
    reporter = OutcomeReporter(out, err, rpc_url=config.rpc_url)
    pipeline = DeploymentPipeline(rpc_manager, config, reporter=reporter)

    try:
        return await pipeline.execute()
    finally:
        await rpc_manager.close()


def main():
    """Process entry: exit 0 on a confirmed deployment, 1 otherwise"""
    try:
        config = DeployConfig.from_env()
    except ValueError as e:
        setup_logging()
        OutcomeReporter().report(PipelineOutcome(error=e))
        sys.exit(1)

    setup_logging(config.log_level, config.log_file)

    outcome = asyncio.run(deploy(config))
    sys.exit(exit_code(outcome))


if __name__ == "__main__":
    main()
