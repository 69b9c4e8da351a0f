"""Pytest configuration and fixtures for dupscan tests."""

import os
import pytest

# Add the project root to the Python path
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dupscan import config as config_module
from dupscan.config import Config
from dupscan.dedup.models import FileMetadata, FileRecord, Period, Table
from dupscan.dedup.proximity import InMemoryFileIndex
from dupscan.performance import get_performance_metrics


@pytest.fixture(autouse=True)
def isolated_state():
    """Restore environment, global config and timing metrics after each test."""
    original_env = os.environ.copy()
    config_module._config = None
    get_performance_metrics().reset()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    config_module._config = None
    get_performance_metrics().reset()


@pytest.fixture
def test_config():
    """Configuration with defaults, independent of the process environment."""
    return Config(
        duplicate_threshold=0.8,
        matched_field_policy="last_pair",
        pair_similarity_threshold=90.0,
        size_tolerance=0.10,
        metadata_similarity_threshold=0.5,
        cluster_max_workers=1,
        cluster_parallel_min_rows=200,
        file_index_path=".dupscan/file_index.json",
        log_level="INFO",
    )


@pytest.fixture
def sample_rows():
    """Two identical people and one distinct person."""
    return [
        {"name": "Alice", "age": "30"},
        {"name": "Alice", "age": "30"},
        {"name": "Bob", "age": "40"},
    ]


@pytest.fixture
def sample_table(sample_rows):
    return Table(headers=["name", "age"], rows=sample_rows)


@pytest.fixture
def customer_rows():
    """Customer list with a typo duplicate, a blank cell and an exact duplicate."""
    return [
        {"name": "Jonathan Smith", "email": "jsmith@example.com", "city": "Lisbon"},
        {"name": "Maria Garcia", "email": "maria.g@example.com", "city": "Porto"},
        {"name": "Jonathon Smith", "email": "jsmith@example.com", "city": "Lisbon"},
        {"name": "Wei Zhang", "email": None, "city": "Braga"},
        {"name": "Maria Garcia", "email": "maria.g@example.com", "city": "Porto"},
    ]


@pytest.fixture
def stored_files():
    """File records as the storage layer would hand them to the index."""
    return [
        FileRecord(
            id="f1",
            size=100,
            digest="abc123",
            media_type="text/csv",
            filename="population.csv",
            metadata=FileMetadata(
                size=100,
                type="text/csv",
                period=Period(start="2020-01-01", end="2020-12-31"),
                spatial_domain="PT",
            ),
        ),
        FileRecord(id="f2", size=100, digest="abc123", filename="population_copy.csv"),
        FileRecord(
            id="f3",
            size=105,
            digest="def456",
            media_type="text/csv",
            filename="population_v2.csv",
            metadata=FileMetadata(size=105, type="text/csv", spatial_domain="PT"),
        ),
        FileRecord(id="f4", size=120, digest="0a0b0c", filename="unrelated.csv"),
        FileRecord(id="f5", size=101, digest="abc123", is_deleted=True, filename="deleted.csv"),
    ]


@pytest.fixture
def memory_index(stored_files):
    return InMemoryFileIndex(stored_files)
