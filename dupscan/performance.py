"""Timing metrics and tuning hints for duplicate scans."""

import time
from typing import Any, Dict, List, Optional

from dupscan.config import Config, get_config
from dupscan.utils.logger import log_info

MAX_SAMPLES = 100


class PerformanceMetrics:
    """Track operation durations for the detector."""

    def __init__(self):
        self.metrics: Dict[str, List[float]] = {}
        self.start_times: Dict[str, float] = {}

    def start_timer(self, operation: str) -> None:
        """Start timing an operation."""
        self.start_times[operation] = time.perf_counter()

    def end_timer(self, operation: str) -> float:
        """End timing an operation and return duration."""
        if operation not in self.start_times:
            return 0.0

        duration = time.perf_counter() - self.start_times.pop(operation)
        samples = self.metrics.setdefault(operation, [])
        samples.append(duration)

        # Keep only the most recent measurements
        if len(samples) > MAX_SAMPLES:
            del samples[:-MAX_SAMPLES]

        return duration

    def get_operation_stats(self, operation: str) -> Dict[str, float]:
        """Get statistics for a specific operation."""
        durations = self.metrics.get(operation)
        if not durations:
            return {}

        return {
            "count": len(durations),
            "avg_ms": round(sum(durations) * 1000 / len(durations), 2),
            "min_ms": round(min(durations) * 1000, 2),
            "max_ms": round(max(durations) * 1000, 2),
            "total_ms": round(sum(durations) * 1000, 2),
        }

    def get_all_stats(self) -> Dict[str, Dict[str, float]]:
        """Get statistics for all operations."""
        return {op: self.get_operation_stats(op) for op in self.metrics}

    def reset(self) -> None:
        self.metrics.clear()
        self.start_times.clear()

    def log_performance_summary(self) -> None:
        """Log a performance summary."""
        stats = self.get_all_stats()
        if not stats:
            return

        log_info("Performance metrics summary")
        for operation, op_stats in stats.items():
            if op_stats:
                log_info(
                    f"  {operation}: {op_stats['count']} calls, "
                    f"avg {op_stats['avg_ms']}ms, "
                    f"min {op_stats['min_ms']}ms, "
                    f"max {op_stats['max_ms']}ms"
                )


# Global instance
performance_metrics = PerformanceMetrics()


def get_performance_metrics() -> PerformanceMetrics:
    """Get the global performance metrics instance."""
    return performance_metrics


def get_performance_recommendations(row_count: int, config: Optional[Config] = None) -> List[str]:
    """Tuning hints for scanning a table of ``row_count`` rows."""
    config = config or get_config()
    recommendations = []
    pairs = row_count * (row_count - 1) // 2

    if pairs > 5_000_000 and config.cluster_max_workers == 1:
        recommendations.append(
            f"{row_count} rows means {pairs} pair comparisons; consider CLUSTER_MAX_WORKERS > 1"
        )

    if config.cluster_max_workers > 1 and row_count < config.cluster_parallel_min_rows:
        recommendations.append(
            f"Table has {row_count} rows, below CLUSTER_PARALLEL_MIN_ROWS "
            f"({config.cluster_parallel_min_rows}); pair scoring will stay serial"
        )

    if config.duplicate_threshold < 0.6:
        recommendations.append(
            f"Consider increasing DUPLICATE_THRESHOLD from {config.duplicate_threshold} to 0.8 "
            "to reduce false positives"
        )

    return recommendations


def log_performance_summary() -> Dict[str, Any]:
    """Log and return the global timing summary."""
    performance_metrics.log_performance_summary()
    return performance_metrics.get_all_stats()
