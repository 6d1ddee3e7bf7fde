"""
Deployment Configuration
Loads deployment settings from the environment (.env supported)
"""

import math
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional
from dotenv import load_dotenv


DEFAULT_RPC_URL = 'http://127.0.0.1:8545'
DEFAULT_CONTRACT_NAME = 'TimedAuction'


@dataclass(frozen=True)
class DeployConfig:
    """Settings for one deployment run"""
    rpc_url: str = DEFAULT_RPC_URL
    contract_name: str = DEFAULT_CONTRACT_NAME
    artifacts_dir: str = 'artifacts'
    private_key: Optional[str] = field(default=None, repr=False)
    confirmations: int = 1
    poll_interval: float = 4.0
    confirmation_timeout: Optional[float] = None
    gas_buffer: float = 1.2
    priority_fee_gwei: float = 1.5
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    def __post_init__(self):
        for name, value in (
            ('POLL_INTERVAL', self.poll_interval),
            ('CONFIRMATION_TIMEOUT', self.confirmation_timeout),
            ('GAS_BUFFER', self.gas_buffer),
            ('PRIORITY_FEE_GWEI', self.priority_fee_gwei),
        ):
            if value is not None and not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value}")

        if self.confirmations < 1:
            raise ValueError(f"DEPLOY_CONFIRMATIONS must be >= 1, got {self.confirmations}")
        if self.poll_interval <= 0:
            raise ValueError(f"POLL_INTERVAL must be > 0, got {self.poll_interval}")
        if self.confirmation_timeout is not None and self.confirmation_timeout <= 0:
            raise ValueError(
                f"CONFIRMATION_TIMEOUT must be > 0, got {self.confirmation_timeout}"
            )
        if self.gas_buffer < 1:
            raise ValueError(f"GAS_BUFFER must be >= 1, got {self.gas_buffer}")
        if self.priority_fee_gwei < 0:
            raise ValueError(f"PRIORITY_FEE_GWEI must be >= 0, got {self.priority_fee_gwei}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'DeployConfig':
        """
        Build configuration from environment variables

        Args:
            environ: Mapping to read from (None = os.environ after loading .env)

        Returns:
            DeployConfig
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        return cls(
            rpc_url=environ.get('RPC_URL') or DEFAULT_RPC_URL,
            contract_name=environ.get('CONTRACT_NAME') or DEFAULT_CONTRACT_NAME,
            artifacts_dir=environ.get('ARTIFACTS_DIR') or 'artifacts',
            private_key=environ.get('DEPLOYER_PRIVATE_KEY') or None,
            confirmations=_parse(environ, 'DEPLOY_CONFIRMATIONS', int, 1),
            poll_interval=_parse(environ, 'POLL_INTERVAL', float, 4.0),
            confirmation_timeout=_parse(environ, 'CONFIRMATION_TIMEOUT', float, None),
            gas_buffer=_parse(environ, 'GAS_BUFFER', float, 1.2),
            priority_fee_gwei=_parse(environ, 'PRIORITY_FEE_GWEI', float, 1.5),
            log_level=(environ.get('LOG_LEVEL') or 'INFO').upper(),
            log_file=environ.get('LOG_FILE') or None,
        )


def _parse(environ: Mapping[str, str], name: str, cast, default):
    raw = environ.get(name)

    if raw is None or raw.strip() == '':
        return default

    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be a {cast.__name__}, got {raw!r}") from e
