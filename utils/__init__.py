"""
Utilities Package
Configuration and RPC connection handling
"""

from .config import DeployConfig
from .rpc_manager import RPCManager

__all__ = [
    'DeployConfig',
    'RPCManager'
]
