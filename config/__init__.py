"""Configuration management for the vote client."""

from .config import (
    SystemConfig, ApiConfig, TxWaitConfig, ZKConfig, API_URLS,
    load_config, save_config
)

__all__ = ['SystemConfig', 'ApiConfig', 'TxWaitConfig', 'ZKConfig', 'API_URLS',
           'load_config', 'save_config']
