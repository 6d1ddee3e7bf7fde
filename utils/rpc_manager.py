"""
RPC Manager
Owns the async node connection used by the deployment pipeline
"""

import asyncio
import re
from urllib.parse import urlparse
import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import ProviderConnectionError
from loguru import logger

from deployer.errors import ConnectionLost


# Transport-level failures: the node could not be reached or stopped answering
CONNECTION_ERRORS = (
    ProviderConnectionError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
)


def describe_endpoint(rpc_url: str) -> str:
    """Endpoint without path or query, which often carry API keys"""
    parsed = urlparse(rpc_url)
    if parsed.scheme and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    return rpc_url


def scrub_url(text: str, rpc_url: str) -> str:
    """
    Replace every occurrence of the endpoint URL in text with its bare endpoint

    Transport errors (aiohttp.ClientResponseError and friends) quote the full
    request URL, possibly re-encoded, so any URL on the same host is cut back
    to scheme and host.
    """
    if not rpc_url:
        return text

    text = text.replace(rpc_url, describe_endpoint(rpc_url))
    parsed = urlparse(rpc_url)
    if not (parsed.scheme and parsed.netloc):
        return text

    pattern = re.compile(
        rf"({re.escape(parsed.scheme)}://{re.escape(parsed.netloc)})[/?#][^\s'\"<>)]*",
        re.IGNORECASE
    )
    return pattern.sub(r"\1", text)


class RPCManager:
    """
    Single-endpoint RPC connection

    Wraps AsyncWeb3 so every pipeline stage awaits the node instead of
    blocking the event loop.
    """

    def __init__(self, rpc_url: str, w3: AsyncWeb3 = None):
        """
        Initialize RPC Manager

        Args:
            rpc_url: HTTP(S) JSON-RPC endpoint
            w3: Pre-built AsyncWeb3 instance (tests inject a fake node here)
        """
        self.rpc_url = rpc_url
        self.endpoint = describe_endpoint(rpc_url)
        self.w3 = w3 if w3 is not None else AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.chain_id = None

    def scrub(self, text: str) -> str:
        """Text with the endpoint URL cut back to scheme and host"""
        return scrub_url(text, self.rpc_url)

    async def connect(self) -> AsyncWeb3:
        """
        Verify the node answers and cache its chain id

        Returns:
            Connected AsyncWeb3 instance

        Raises:
            ConnectionLost: Node unreachable
        """
        try:
            connected = await self.w3.is_connected()
            if connected:
                self.chain_id = await self.w3.eth.chain_id
        except CONNECTION_ERRORS as e:
            raise ConnectionLost(
                f"Failed to connect to {self.endpoint}: {self.scrub(str(e))}"
            ) from e

        if not connected:
            raise ConnectionLost(f"Failed to connect to {self.endpoint}")

        logger.info(f"Connected to {self.endpoint} (chain id {self.chain_id})")
        return self.w3

    async def close(self):
        """Release the provider's HTTP session"""
        disconnect = getattr(self.w3.provider, 'disconnect', None)
        if disconnect is None:
            return

        try:
            await disconnect()
        except CONNECTION_ERRORS as e:
            logger.debug(f"Error closing RPC session: {self.scrub(str(e))}")
