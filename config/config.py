import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict

import yaml

logger = logging.getLogger(__name__)

API_URLS: Dict[str, str] = {
    "dev": "https://api-dev.vocdoni.net/v2",
    "stg": "https://api-stg.vocdoni.net/v2",
    "prod": "https://api.vocdoni.io/v2",
}


@dataclass
class ApiConfig:
    environment: str = "stg"
    url: Optional[str] = None
    request_timeout: float = 30.0

    def __post_init__(self):
        if self.url is None:
            if self.environment not in API_URLS:
                raise ValueError(
                    f"Unknown environment '{self.environment}', "
                    f"expected one of {sorted(API_URLS)}")
            self.url = API_URLS[self.environment]
        self.url = self.url.rstrip("/")


@dataclass
class TxWaitConfig:
    retry_time_ms: int = 5000
    attempts: int = 6


@dataclass
class ZKConfig:
    snarkjs_bin: str = "snarkjs"
    proof_timeout: int = 120
    work_dir: Optional[Path] = None

    def __post_init__(self):
        if self.work_dir is not None:
            self.work_dir = Path(self.work_dir)


@dataclass
class SystemConfig:
    api: ApiConfig = field(default_factory=ApiConfig)
    tx_wait: TxWaitConfig = field(default_factory=TxWaitConfig)
    zk_config: ZKConfig = field(default_factory=ZKConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_level: str = "INFO"
    enable_debug_mode: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        if self.enable_debug_mode:
            self.log_level = "DEBUG"


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = Path("config.yaml")
    config_path = Path(config_path)

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

            api_data = config_data.get('api', {})
            api = ApiConfig(
                environment=api_data.get('environment', 'stg'),
                url=api_data.get('url'),
                request_timeout=api_data.get('request_timeout', 30.0)
            )

            wait_data = config_data.get('tx_wait', {})
            tx_wait = TxWaitConfig(
                retry_time_ms=wait_data.get('retry_time_ms', 5000),
                attempts=wait_data.get('attempts', 6)
            )

            zk_data = config_data.get('zk_proofs', {})
            zk_config = ZKConfig(
                snarkjs_bin=zk_data.get('snarkjs_bin', 'snarkjs'),
                proof_timeout=zk_data.get('proof_timeout', 120),
                work_dir=zk_data.get('work_dir')
            )

            return SystemConfig(
                api=api,
                tx_wait=tx_wait,
                zk_config=zk_config,
                log_dir=Path(config_data.get('log_dir', 'logs')),
                log_level=config_data.get('log_level', 'INFO'),
                enable_debug_mode=config_data.get('enable_debug_mode', False)
            )
        except (OSError, yaml.YAMLError, ValueError, AttributeError) as e:
            logger.warning(
                f"Could not load config file {config_path}: {e}. Using default configuration")

    return SystemConfig()


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = Path("config.yaml")

    config_data = {
        'api': {
            'environment': config.api.environment,
            'url': config.api.url,
            'request_timeout': config.api.request_timeout
        },
        'tx_wait': {
            'retry_time_ms': config.tx_wait.retry_time_ms,
            'attempts': config.tx_wait.attempts
        },
        'zk_proofs': {
            'snarkjs_bin': config.zk_config.snarkjs_bin,
            'proof_timeout': config.zk_config.proof_timeout,
            'work_dir': str(config.zk_config.work_dir) if config.zk_config.work_dir else None
        },
        'log_dir': str(config.log_dir),
        'log_level': config.log_level,
        'enable_debug_mode': config.enable_debug_mode
    }

    with open(config_path, 'w') as f:
        yaml.dump(config_data, f, default_flow_style=False)
