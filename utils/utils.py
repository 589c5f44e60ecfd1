"""
Logging and performance monitoring utilities for the vote client
"""

import logging
import json
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional
import platform
from dataclasses import dataclass, asdict

import numpy as np
import psutil


@dataclass
class PerformanceMetrics:
    operation: str
    duration_seconds: float
    cpu_percent: float
    memory_mb: float
    timestamp: float
    additional_data: Dict[str, Any] = None


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None):
    """Setup logging to a file and the console"""
    if log_file is None:
        log_dir = Path("logs")
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / \
            f"vote_client_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Clear existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized. Log file: {log_file}")

    return logger


class PerformanceMonitor:
    """Records wall time, CPU and RSS of named operations"""

    def __init__(self):
        self.metrics: List[PerformanceMetrics] = []
        self.process = psutil.Process()

    def start_operation(self, operation_name: str) -> 'OperationContext':
        """Start monitoring an operation - returns context manager"""
        return OperationContext(self, operation_name)

    def record_metric(self, metric: PerformanceMetrics):
        self.metrics.append(metric)

    def get_summary(self) -> Dict[str, Any]:
        """Per-operation statistics over everything recorded so far"""
        if not self.metrics:
            return {
                'total_operations': 0,
                'total_duration': 0.0,
                'operations': {}
            }

        operation_groups: Dict[str, List[PerformanceMetrics]] = {}
        for metric in self.metrics:
            operation_groups.setdefault(metric.operation, []).append(metric)

        summary = {
            'total_operations': len(self.metrics),
            'operations': {}
        }

        for op_name, metrics in operation_groups.items():
            durations = [m.duration_seconds for m in metrics]
            cpu_usages = [m.cpu_percent for m in metrics if m.cpu_percent > 0]
            memory_usages = [m.memory_mb for m in metrics if m.memory_mb > 0]

            summary['operations'][op_name] = {
                'count': len(metrics),
                'total_duration': sum(durations),
                'avg_duration': float(np.mean(durations)),
                'min_duration': min(durations),
                'max_duration': max(durations),
                'std_duration': float(np.std(durations)) if len(durations) > 1 else 0.0,
                'avg_cpu_percent': float(np.mean(cpu_usages)) if cpu_usages else 0.0,
                'avg_memory_mb': float(np.mean(memory_usages)) if memory_usages else 0.0,
                'peak_memory_mb': max(memory_usages) if memory_usages else 0.0,
            }

        summary['total_duration'] = sum(
            op_data['total_duration']
            for op_data in summary['operations'].values()
        )

        return summary

    def save_metrics(self, filepath: Path):
        filepath.parent.mkdir(parents=True, exist_ok=True)

        metrics_data = {
            'metrics': [asdict(m) for m in self.metrics],
            'summary': self.get_summary(),
            'system_info': get_system_info(),
            'timestamp': datetime.now().isoformat()
        }

        with open(filepath, 'w') as f:
            json.dump(metrics_data, f, indent=2, default=str)


class OperationContext:
    """Context manager for performance monitoring"""

    def __init__(self, monitor: PerformanceMonitor, operation_name: str):
        self.monitor = monitor
        self.operation_name = operation_name
        self.start_time = None
        self.start_memory = 0.0

    def __enter__(self):
        self.start_time = time.time()
        # First call primes psutil's CPU counter
        self.monitor.process.cpu_percent()
        self.start_memory = self.monitor.process.memory_info().rss / 1024 / 1024
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        end_cpu = self.monitor.process.cpu_percent()
        end_memory = self.monitor.process.memory_info().rss / 1024 / 1024

        self.monitor.record_metric(PerformanceMetrics(
            operation=self.operation_name,
            duration_seconds=duration,
            cpu_percent=end_cpu,
            memory_mb=max(self.start_memory, end_memory),
            timestamp=self.start_time,
            additional_data={'exception': exc_type is not None}
        ))


def get_system_info() -> Dict[str, Any]:
    vm = psutil.virtual_memory()
    return {
        'platform': platform.platform(),
        'python_version': platform.python_version(),
        'machine': platform.machine(),
        'cpu_count_logical': psutil.cpu_count(logical=True),
        'total_memory_gb': round(vm.total / 1024 / 1024 / 1024, 2),
        'available_memory_gb': round(vm.available / 1024 / 1024 / 1024, 2),
        'timestamp': datetime.now().isoformat()
    }


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format"""
    if seconds < 1:
        return f"{seconds*1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = seconds % 60
        return f"{hours}h {minutes}m {secs:.1f}s"
