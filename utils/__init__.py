"""Shared utilities for the vote client."""

from .utils import (
    setup_logging,
    PerformanceMonitor,
    PerformanceMetrics,
    get_system_info,
    format_duration
)
from .codec import (
    strip0x,
    ensure0x,
    hex_to_bytes,
    bytes_to_hex,
    zero_pad_hex,
    random_hex,
    keccak256_hex,
    sha256_hex
)

__all__ = [
    'setup_logging',
    'PerformanceMonitor',
    'PerformanceMetrics',
    'get_system_info',
    'format_duration',
    'strip0x',
    'ensure0x',
    'hex_to_bytes',
    'bytes_to_hex',
    'zero_pad_hex',
    'random_hex',
    'keccak256_hex',
    'sha256_hex'
]
