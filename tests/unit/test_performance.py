"""Unit tests for timing metrics and tuning hints."""

from unittest.mock import patch

from dupscan.config import Config
from dupscan.performance import (
    MAX_SAMPLES,
    PerformanceMetrics,
    get_performance_metrics,
    get_performance_recommendations,
    log_performance_summary,
)


class TestPerformanceMetrics:
    def test_timer_records_duration(self):
        metrics = PerformanceMetrics()

        metrics.start_timer("cluster_table")
        duration = metrics.end_timer("cluster_table")

        assert duration >= 0
        stats = metrics.get_operation_stats("cluster_table")
        assert stats["count"] == 1
        assert set(stats) == {"count", "avg_ms", "min_ms", "max_ms", "total_ms"}

    def test_end_without_start(self):
        metrics = PerformanceMetrics()

        assert metrics.end_timer("never_started") == 0.0
        assert metrics.get_operation_stats("never_started") == {}

    def test_keeps_recent_samples_only(self):
        metrics = PerformanceMetrics()
        for _ in range(MAX_SAMPLES + 20):
            metrics.start_timer("op")
            metrics.end_timer("op")

        assert metrics.get_operation_stats("op")["count"] == MAX_SAMPLES

    def test_reset(self):
        metrics = PerformanceMetrics()
        metrics.start_timer("op")
        metrics.end_timer("op")

        metrics.reset()

        assert metrics.get_all_stats() == {}

    def test_global_summary(self):
        metrics = get_performance_metrics()
        metrics.start_timer("check_upload")
        metrics.end_timer("check_upload")

        with patch("dupscan.performance.log_info") as mock_log:
            stats = log_performance_summary()

        assert stats["check_upload"]["count"] == 1
        assert mock_log.call_count == 2

    def test_summary_silent_without_samples(self):
        with patch("dupscan.performance.log_info") as mock_log:
            assert log_performance_summary() == {}

        mock_log.assert_not_called()


class TestPerformanceRecommendations:
    def test_no_hints_for_defaults(self, test_config):
        assert get_performance_recommendations(100, test_config) == []

    def test_large_table_single_worker(self, test_config):
        recs = get_performance_recommendations(4000, test_config)
        assert any("CLUSTER_MAX_WORKERS" in r for r in recs)

    def test_small_table_with_workers(self):
        config = Config(cluster_max_workers=4, cluster_parallel_min_rows=200)
        recs = get_performance_recommendations(50, config)
        assert any("stay serial" in r for r in recs)

    def test_low_threshold(self):
        recs = get_performance_recommendations(10, Config(duplicate_threshold=0.5))
        assert any("DUPLICATE_THRESHOLD" in r for r in recs)
