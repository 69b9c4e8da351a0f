"""Configuration management using Pydantic BaseSettings.

This module provides centralized configuration management with validation,
type safety, and sensible defaults for dupscan.
"""
from typing import List
from pydantic import Field, validator
from pydantic_settings import BaseSettings

MATCHED_FIELD_POLICIES = ('last_pair', 'union')

_SETTINGS_CONFIG = {
    "env_file": ".env",
    "env_file_encoding": "utf-8",
    "case_sensitive": False,
    "extra": "ignore"
}


class DedupConfig(BaseSettings):
    """Row clustering and pairwise record matching configuration."""
    duplicate_threshold: float = Field(0.8, env="DUPLICATE_THRESHOLD", gt=0.0, le=1.0, description="Similarity threshold for fields and rows")
    matched_field_policy: str = Field("last_pair", env="MATCHED_FIELD_POLICY", description="How group matched fields are attributed")
    pair_similarity_threshold: float = Field(90.0, env="PAIR_SIMILARITY_THRESHOLD", ge=0.0, le=100.0, description="Pairwise record report threshold (percent)")

    model_config = dict(_SETTINGS_CONFIG)

    @validator('matched_field_policy')
    def validate_matched_field_policy(cls, v):
        if v.lower() not in MATCHED_FIELD_POLICIES:
            raise ValueError(f'matched_field_policy must be one of: {", ".join(MATCHED_FIELD_POLICIES)}')
        return v.lower()


class ProximityConfig(BaseSettings):
    """Whole-file proximity search configuration."""
    size_tolerance: float = Field(0.10, env="SIZE_TOLERANCE", ge=0.0, le=1.0, description="Size window as a fraction of the query size")
    metadata_similarity_threshold: float = Field(0.5, env="METADATA_SIMILARITY_THRESHOLD", ge=0.0, le=1.0, description="Minimum metadata similarity for similar files")
    hash_chunk_size: int = Field(65536, env="HASH_CHUNK_SIZE", ge=1024, le=16 * 1024 * 1024, description="Read size when hashing files")
    file_index_path: str = Field(".dupscan/file_index.json", env="FILE_INDEX_PATH", description="JSON file index location")

    model_config = dict(_SETTINGS_CONFIG)


class ClusterConfig(BaseSettings):
    """Pair-scoring worker pool configuration."""
    cluster_max_workers: int = Field(1, env="CLUSTER_MAX_WORKERS", ge=1, le=64, description="Threads used to score pairs for a seed")
    cluster_parallel_min_rows: int = Field(200, env="CLUSTER_PARALLEL_MIN_ROWS", ge=2, description="Row count before pair scoring goes parallel")

    model_config = dict(_SETTINGS_CONFIG)


class LoggingConfig(BaseSettings):
    """Logging configuration."""
    level: str = Field("INFO", env="LOG_LEVEL", description="Logging level")
    format: str = Field("%(asctime)s - %(name)s - %(levelname)s - %(message)s", env="LOG_FORMAT", description="Log format")

    @validator('level')
    def validate_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Invalid log level: {v}. Valid options: {valid_levels}')
        return v.upper()


class Config(BaseSettings):
    """Main configuration class combining all settings."""

    # Row clustering
    duplicate_threshold: float = Field(0.8, env="DUPLICATE_THRESHOLD", gt=0.0, le=1.0, description="Similarity threshold for fields and rows")
    matched_field_policy: str = Field("last_pair", env="MATCHED_FIELD_POLICY", description="How group matched fields are attributed")
    pair_similarity_threshold: float = Field(90.0, env="PAIR_SIMILARITY_THRESHOLD", ge=0.0, le=100.0, description="Pairwise record report threshold (percent)")

    # Proximity search
    size_tolerance: float = Field(0.10, env="SIZE_TOLERANCE", ge=0.0, le=1.0, description="Size window as a fraction of the query size")
    metadata_similarity_threshold: float = Field(0.5, env="METADATA_SIMILARITY_THRESHOLD", ge=0.0, le=1.0, description="Minimum metadata similarity for similar files")
    hash_chunk_size: int = Field(65536, env="HASH_CHUNK_SIZE", ge=1024, le=16 * 1024 * 1024, description="Read size when hashing files")
    file_index_path: str = Field(".dupscan/file_index.json", env="FILE_INDEX_PATH", description="JSON file index location")

    # Worker pool
    cluster_max_workers: int = Field(1, env="CLUSTER_MAX_WORKERS", ge=1, le=64, description="Threads used to score pairs for a seed")
    cluster_parallel_min_rows: int = Field(200, env="CLUSTER_PARALLEL_MIN_ROWS", ge=2, description="Row count before pair scoring goes parallel")

    # Logging
    log_level: str = Field("INFO", env="LOG_LEVEL", description="Logging level")
    log_format: str = Field("%(asctime)s - %(name)s - %(levelname)s - %(message)s", env="LOG_FORMAT", description="Log format")

    model_config = dict(_SETTINGS_CONFIG)

    @validator('matched_field_policy')
    def validate_matched_field_policy(cls, v):
        if v.lower() not in MATCHED_FIELD_POLICIES:
            raise ValueError(f'matched_field_policy must be one of: {", ".join(MATCHED_FIELD_POLICIES)}')
        return v.lower()

    @validator('log_level')
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Invalid log level: {v}. Valid options: {valid_levels}')
        return v.upper()

    @property
    def dedup(self) -> DedupConfig:
        return DedupConfig(
            duplicate_threshold=self.duplicate_threshold,
            matched_field_policy=self.matched_field_policy,
            pair_similarity_threshold=self.pair_similarity_threshold,
        )

    @property
    def proximity(self) -> ProximityConfig:
        return ProximityConfig(
            size_tolerance=self.size_tolerance,
            metadata_similarity_threshold=self.metadata_similarity_threshold,
            hash_chunk_size=self.hash_chunk_size,
            file_index_path=self.file_index_path,
        )

    @property
    def cluster(self) -> ClusterConfig:
        return ClusterConfig(
            cluster_max_workers=self.cluster_max_workers,
            cluster_parallel_min_rows=self.cluster_parallel_min_rows,
        )

    @property
    def logging(self) -> LoggingConfig:
        return LoggingConfig(level=self.log_level, format=self.log_format)

    def validate_configuration(self) -> List[str]:
        """Validate the complete configuration and return any issues."""
        issues = []

        if self.duplicate_threshold < 0.5:
            issues.append("DUPLICATE_THRESHOLD is very low, may group unrelated rows")

        if self.pair_similarity_threshold < 50:
            issues.append("PAIR_SIMILARITY_THRESHOLD is very low, may report many false duplicate pairs")

        if self.size_tolerance > 0.5:
            issues.append("SIZE_TOLERANCE above 0.5 makes size-based proximity meaningless")

        if self.cluster_max_workers > 1 and self.cluster_parallel_min_rows < 20:
            issues.append("CLUSTER_PARALLEL_MIN_ROWS is very low, thread overhead will dominate small tables")

        if not self.file_index_path.endswith(".json"):
            issues.append("FILE_INDEX_PATH must point to a .json file")

        return issues

    def log_configuration(self) -> None:
        """Log the current configuration."""
        from dupscan.utils.logger import log_info

        log_info("Configuration loaded",
                 duplicate_threshold=self.duplicate_threshold,
                 matched_field_policy=self.matched_field_policy,
                 pair_similarity_threshold=self.pair_similarity_threshold,
                 size_tolerance=self.size_tolerance,
                 metadata_similarity_threshold=self.metadata_similarity_threshold,
                 cluster_max_workers=self.cluster_max_workers,
                 file_index_path=self.file_index_path,
                 log_level=self.log_level)


# Global configuration instance (lazy loading)
_config = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment variables."""
    global _config
    _config = Config()
    return _config
