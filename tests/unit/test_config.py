"""Unit tests for configuration schema."""

import pytest
import os
from pydantic import ValidationError

from dupscan.config import (
    ClusterConfig,
    Config,
    DedupConfig,
    LoggingConfig,
    ProximityConfig,
    get_config,
    reload_config,
)

pytestmark = pytest.mark.config


class TestDedupConfig:
    """Test row clustering configuration validation."""

    def test_dedup_config_defaults(self):
        config = DedupConfig()

        assert config.duplicate_threshold == 0.8
        assert config.matched_field_policy == "last_pair"
        assert config.pair_similarity_threshold == 90.0

    def test_threshold_must_be_in_unit_interval(self):
        """Threshold 1.01 is rejected, 1.0 accepted, 0 rejected."""
        assert DedupConfig(duplicate_threshold=1.0).duplicate_threshold == 1.0

        with pytest.raises(ValidationError):
            DedupConfig(duplicate_threshold=1.01)

        with pytest.raises(ValidationError):
            DedupConfig(duplicate_threshold=0.0)

    def test_matched_field_policy_validation(self):
        assert DedupConfig(matched_field_policy="UNION").matched_field_policy == "union"

        with pytest.raises(ValidationError):
            DedupConfig(matched_field_policy="intersection")

    def test_pair_threshold_is_a_percentage(self):
        with pytest.raises(ValidationError):
            DedupConfig(pair_similarity_threshold=150)


class TestProximityConfig:
    def test_proximity_config_defaults(self):
        config = ProximityConfig()

        assert config.size_tolerance == 0.10
        assert config.metadata_similarity_threshold == 0.5
        assert config.hash_chunk_size == 65536
        assert config.file_index_path.endswith(".json")

    def test_size_tolerance_range(self):
        with pytest.raises(ValidationError):
            ProximityConfig(size_tolerance=-0.1)

        with pytest.raises(ValidationError):
            ProximityConfig(size_tolerance=1.5)


class TestClusterConfig:
    def test_cluster_config_defaults(self):
        config = ClusterConfig()

        assert config.cluster_max_workers == 1
        assert config.cluster_parallel_min_rows == 200

    def test_workers_must_be_positive(self):
        with pytest.raises(ValidationError):
            ClusterConfig(cluster_max_workers=0)


class TestLoggingConfig:
    def test_level_is_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")


class TestConfig:
    """Test the flat configuration and its grouped views."""

    def test_grouped_views(self, test_config):
        assert test_config.dedup.duplicate_threshold == 0.8
        assert test_config.proximity.size_tolerance == 0.10
        assert test_config.cluster.cluster_max_workers == 1
        assert test_config.logging.level == "INFO"

    def test_environment_variables_are_read(self):
        os.environ["DUPLICATE_THRESHOLD"] = "0.9"
        os.environ["MATCHED_FIELD_POLICY"] = "union"
        os.environ["CLUSTER_MAX_WORKERS"] = "4"

        config = Config()

        assert config.duplicate_threshold == 0.9
        assert config.matched_field_policy == "union"
        assert config.cluster_max_workers == 4

    def test_invalid_environment_value(self):
        os.environ["DUPLICATE_THRESHOLD"] = "1.01"

        with pytest.raises(ValidationError):
            Config()

    def test_validate_configuration_clean(self, test_config):
        assert test_config.validate_configuration() == []

    def test_validate_configuration_reports_issues(self):
        config = Config(
            duplicate_threshold=0.3,
            pair_similarity_threshold=40,
            size_tolerance=0.8,
            cluster_max_workers=4,
            cluster_parallel_min_rows=5,
            file_index_path="index.db",
        )

        issues = config.validate_configuration()

        assert len(issues) == 5
        assert any("DUPLICATE_THRESHOLD" in issue for issue in issues)
        assert any("PAIR_SIMILARITY_THRESHOLD" in issue for issue in issues)
        assert any("SIZE_TOLERANCE" in issue for issue in issues)
        assert any("CLUSTER_PARALLEL_MIN_ROWS" in issue for issue in issues)
        assert any("FILE_INDEX_PATH" in issue for issue in issues)

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reload_config_picks_up_changes(self):
        first = get_config()
        os.environ["SIZE_TOLERANCE"] = "0.2"

        reloaded = reload_config()

        assert reloaded is not first
        assert reloaded.size_tolerance == 0.2
        assert get_config() is reloaded
