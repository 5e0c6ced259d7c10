"""
Performance monitoring for the chat pipeline.
Per-operation timing statistics plus OS-level sampling through psutil.
"""

import time
import logging
import threading
from collections import defaultdict, deque
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import psutil

logger = logging.getLogger(__name__)

SLOW_OPERATION_SECONDS = 2.0
HIGH_ERROR_RATE = 0.1


@dataclass
class PerformanceMetric:
    """Single timestamped measurement."""
    name: str
    value: float
    unit: str
    timestamp: datetime = field(default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationStats:
    """Statistics for a specific operation."""
    operation_name: str
    call_count: int = 0
    total_time: float = 0.0
    min_time: float = float('inf')
    max_time: float = 0.0
    last_call: Optional[datetime] = None
    error_count: int = 0

    @property
    def avg_time(self) -> float:
        return self.total_time / self.call_count if self.call_count > 0 else 0.0

    @property
    def error_rate(self) -> float:
        return self.error_count / self.call_count if self.call_count > 0 else 0.0

    def add_measurement(self, execution_time: float, success: bool = True):
        self.call_count += 1
        self.total_time += execution_time
        self.min_time = min(self.min_time, execution_time)
        self.max_time = max(self.max_time, execution_time)
        self.last_call = datetime.utcnow()

        if not success:
            self.error_count += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "call_count": self.call_count,
            "avg_time": self.avg_time,
            "min_time": self.min_time if self.call_count else 0.0,
            "max_time": self.max_time,
            "error_rate": self.error_rate,
            "last_call": self.last_call.isoformat() if self.last_call else None
        }


class PerformanceMonitor:
    """Collects operation timings and system metrics."""

    def __init__(self, max_history_size: int = 1000):
        self.max_history_size = max_history_size
        self.metrics_history: deque = deque(maxlen=max_history_size)
        self.operation_stats: Dict[str, OperationStats] = {}
        self.system_metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._process = psutil.Process()

    def sample_system_metrics(self) -> Dict[str, Any]:
        """Take a non-blocking snapshot of host and process resource usage."""
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')
        process_memory = self._process.memory_info()

        metrics = {
            'cpu_percent': psutil.cpu_percent(interval=None),
            'memory_percent': memory.percent,
            'memory_available_gb': memory.available / (1024 ** 3),
            'disk_percent': disk.percent,
            'disk_free_gb': disk.free / (1024 ** 3),
            'process_rss_mb': process_memory.rss / (1024 ** 2),
            'process_threads': self._process.num_threads(),
            'timestamp': datetime.utcnow().isoformat()
        }

        with self._lock:
            self.system_metrics = dict(metrics)

        self.add_metric("system.cpu_percent", metrics['cpu_percent'], "percent")
        self.add_metric("system.memory_percent", metrics['memory_percent'], "percent")
        return metrics

    def add_metric(self, name: str, value: float, unit: str,
                   timestamp: Optional[datetime] = None, metadata: Optional[Dict[str, Any]] = None):
        metric = PerformanceMetric(
            name=name,
            value=value,
            unit=unit,
            timestamp=timestamp or datetime.utcnow(),
            metadata=metadata or {}
        )

        with self._lock:
            self.metrics_history.append(metric)

    def record_operation(self, operation_name: str, execution_time: float, success: bool = True):
        """Record operation execution statistics."""
        with self._lock:
            if operation_name not in self.operation_stats:
                self.operation_stats[operation_name] = OperationStats(operation_name)
            self.operation_stats[operation_name].add_measurement(execution_time, success)

        self.add_metric(
            f"operation.{operation_name}.execution_time",
            execution_time,
            "seconds",
            metadata={"success": success}
        )

    def get_operation_stats(self, operation_name: Optional[str] = None) -> Dict[str, OperationStats]:
        with self._lock:
            if operation_name:
                stats = self.operation_stats.get(operation_name)
                return {operation_name: stats} if stats else {}
            return dict(self.operation_stats)

    def get_metrics_summary(self, hours: int = 24) -> Dict[str, Any]:
        """Summarize metrics recorded within the last ``hours``."""
        cutoff_time = datetime.utcnow() - timedelta(hours=hours)

        with self._lock:
            recent_metrics = [m for m in self.metrics_history if m.timestamp >= cutoff_time]
            operations = {
                name: stats.to_dict() for name, stats in self.operation_stats.items()
                if stats.last_call and stats.last_call >= cutoff_time
            }
            system = dict(self.system_metrics)

        metrics_by_name = defaultdict(list)
        for metric in recent_metrics:
            metrics_by_name[metric.name].append(metric.value)

        summary = {
            name: {
                "count": len(values),
                "avg": sum(values) / len(values),
                "min": min(values),
                "max": max(values),
                "latest": values[-1]
            }
            for name, values in metrics_by_name.items()
        }

        return {
            "metrics": summary,
            "operations": operations,
            "system": system,
            "period_hours": hours,
            "total_metrics": len(recent_metrics)
        }

    def get_performance_recommendations(self) -> List[str]:
        recommendations = []

        with self._lock:
            if self.system_metrics.get('cpu_percent', 0) > 80:
                recommendations.append("High CPU usage detected. Consider reducing concurrent sessions.")

            if self.system_metrics.get('memory_percent', 0) > 85:
                recommendations.append("High memory usage detected. Consider a shorter session idle timeout.")

            for op_name, stats in self.operation_stats.items():
                if stats.avg_time > SLOW_OPERATION_SECONDS:
                    recommendations.append(
                        f"Operation '{op_name}' is slow (avg: {stats.avg_time:.2f}s)."
                    )
                if stats.error_rate > HIGH_ERROR_RATE:
                    recommendations.append(
                        f"Operation '{op_name}' has high error rate ({stats.error_rate * 100:.1f}%)."
                    )

        return recommendations

    def clear_metrics(self):
        with self._lock:
            self.metrics_history.clear()
            self.operation_stats.clear()
            self.system_metrics.clear()
        logger.info("Performance metrics cleared")


# Global performance monitor instance
performance_monitor = PerformanceMonitor()


@asynccontextmanager
async def async_timer(operation_name: str, monitor: Optional[PerformanceMonitor] = None):
    """Async context manager for timing operations."""
    monitor = monitor or performance_monitor
    start_time = time.perf_counter()
    success = True
    try:
        yield
    except Exception:
        success = False
        raise
    finally:
        monitor.record_operation(operation_name, time.perf_counter() - start_time, success)


@contextmanager
def timer(operation_name: str, monitor: Optional[PerformanceMonitor] = None):
    """Context manager for timing operations."""
    monitor = monitor or performance_monitor
    start_time = time.perf_counter()
    success = True
    try:
        yield
    except Exception:
        success = False
        raise
    finally:
        monitor.record_operation(operation_name, time.perf_counter() - start_time, success)
