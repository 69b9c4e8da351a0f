"""Command-line entry point for dupscan.

Loads environment variables, validates configuration, and runs one of:
``scan`` (row clustering of a CSV/XLSX file), ``pairs`` (pairwise record
report), ``hash`` (content digest of a file), ``check`` (compare a file
against the JSON file index, optionally registering it) or ``datasets``
(find tables that duplicate each other).

``check`` ranks size-proximate files by metadata similarity.  Without
``--type``, ``--spatial-domain`` or a period only the size is compared, so
every file in the size window scores high.
"""
from dotenv import load_dotenv
import argparse
import json
import os
import sys
import uuid
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

# Load environment variables first, before any other imports
load_dotenv()

from dupscan.config import get_config, reload_config
from dupscan.dedup import (
    DuplicateDetector,
    FileMetadata,
    FileRecord,
    JsonFileIndex,
    Period,
    ProximitySearch,
    hash_file,
)
from dupscan.errors import DupScanError
from dupscan.loader import load_table
from dupscan.performance import get_performance_recommendations, log_performance_summary
from dupscan.utils.logger import configure_logging, log_error, log_info, log_scan_progress


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find duplicate rows in tabular files and duplicate stored files.")
    parser.add_argument('--log-level', type=str, help='Override LOG_LEVEL.')
    sub = parser.add_subparsers(dest='command', required=True)

    scan = sub.add_parser('scan', help='Cluster duplicate rows of a CSV/XLSX file.')
    scan.add_argument('path', help='CSV or XLSX file to scan.')
    scan.add_argument('--threshold', type=float, help='Similarity threshold in (0, 1] (default: 0.8).')
    scan.add_argument('--workers', type=int, help='Threads used for pair scoring.')
    scan.add_argument('--policy', choices=['last_pair', 'union'], help='Matched-field attribution policy.')
    scan.add_argument('--output', type=str, help='Write the JSON report to this file instead of stdout.')

    pairs = sub.add_parser('pairs', help='List record pairs above a percentage similarity.')
    pairs.add_argument('path', help='CSV or XLSX file to check.')
    pairs.add_argument('--threshold', type=float, help='Percentage threshold in [0, 100] (default: 90).')

    hash_cmd = sub.add_parser('hash', help='Print the SHA-256 digest of a file.')
    hash_cmd.add_argument('path', help='File to hash.')

    check = sub.add_parser('check', help='Compare a file against the JSON file index.')
    check.add_argument('path', help='File to check.')
    check.add_argument('--index', type=str, help='Override FILE_INDEX_PATH.')
    check.add_argument('--register', action='store_true', help='Add the file to the index after checking.')
    check.add_argument('--type', dest='media_type', type=str, help='Media type of the file (e.g. text/csv).')
    check.add_argument('--spatial-domain', type=str, help='Spatial domain the data covers.')
    check.add_argument('--period-start', type=datetime.fromisoformat, help='Start of the covered period (ISO date).')
    check.add_argument('--period-end', type=datetime.fromisoformat, help='End of the covered period (ISO date).')

    datasets = sub.add_parser('datasets', help='Find tables that duplicate each other.')
    datasets.add_argument('paths', nargs='+', help='CSV or XLSX files to compare.')
    datasets.add_argument('--threshold', type=float, help='Column similarity threshold in (0, 1] (default: 0.8).')

    return parser


def apply_overrides(args: argparse.Namespace) -> None:
    """Apply parsed arguments to environment variables and reload settings."""
    if args.log_level is not None:
        os.environ['LOG_LEVEL'] = args.log_level
    if getattr(args, 'threshold', None) is not None and args.command in ('scan', 'datasets'):
        os.environ['DUPLICATE_THRESHOLD'] = str(args.threshold)
    if getattr(args, 'threshold', None) is not None and args.command == 'pairs':
        os.environ['PAIR_SIMILARITY_THRESHOLD'] = str(args.threshold)
    if getattr(args, 'workers', None) is not None:
        os.environ['CLUSTER_MAX_WORKERS'] = str(args.workers)
    if getattr(args, 'policy', None) is not None:
        os.environ['MATCHED_FIELD_POLICY'] = args.policy
    if getattr(args, 'index', None) is not None:
        os.environ['FILE_INDEX_PATH'] = args.index
    reload_config()


def run_scan(args: argparse.Namespace) -> int:
    config = get_config()
    table = load_table(args.path)
    log_scan_progress("Table loaded", rows=len(table), columns=len(table.headers))

    for rec in get_performance_recommendations(len(table), config):
        log_info(f"  💡 {rec}")

    report = DuplicateDetector(config=config).scan_table(table)
    output = report.to_json()
    if args.output:
        Path(args.output).write_text(output, encoding='utf-8')
        print(f"✅ Report written: {args.output} ({report.duplicate_groups} groups)")
    else:
        print(output)
    return 0


def run_pairs(args: argparse.Namespace) -> int:
    table = load_table(args.path)
    result = DuplicateDetector(config=get_config()).find_pairs(table)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False, default=str))
    return 0


def run_hash(args: argparse.Namespace) -> int:
    proximity = get_config().proximity
    print(hash_file(args.path, chunk_size=proximity.hash_chunk_size))
    return 0


def metadata_from_args(args: argparse.Namespace, size: int) -> FileMetadata:
    """Build file metadata from the check options; a period needs both ends."""
    period = None
    if args.period_start is not None and args.period_end is not None:
        period = Period(start=args.period_start, end=args.period_end)
    return FileMetadata(
        size=size,
        type=args.media_type,
        period=period,
        spatial_domain=args.spatial_domain,
    )


def run_check(args: argparse.Namespace) -> int:
    config = get_config()
    proximity = config.proximity
    path = Path(args.path)
    index = JsonFileIndex(proximity.file_index_path)
    detector = DuplicateDetector(
        proximity=ProximitySearch(index, size_tolerance=proximity.size_tolerance),
        config=config,
    )

    data = path.read_bytes()
    metadata = metadata_from_args(args, len(data))
    result = detector.check_upload(data, metadata=metadata)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False, default=str))

    if args.register:
        record = FileRecord(
            id=uuid.uuid4().hex,
            size=result.size,
            digest=result.digest,
            media_type=args.media_type or "application/octet-stream",
            metadata=metadata,
            filename=path.name,
        )
        index.add(record)
        log_info("File registered in index", file_id=record.id, filename=path.name)
    return 0


def run_datasets(args: argparse.Namespace) -> int:
    tables = [load_table(path) for path in args.paths]
    names = [Path(path).name for path in args.paths]
    groups = DuplicateDetector(config=get_config()).scan_datasets(tables, names=names)
    output = {
        "hasDuplicates": bool(groups),
        "duplicateGroups": [g.to_dict() for g in groups],
    }
    print(json.dumps(output, indent=2, ensure_ascii=False, default=str))
    return 0


COMMANDS = {
    'scan': run_scan,
    'pairs': run_pairs,
    'hash': run_hash,
    'check': run_check,
    'datasets': run_datasets,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        apply_overrides(args)
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 1

    config = get_config()
    configure_logging(config.logging.level, config.logging.format)
    config.log_configuration()

    issues = config.validate_configuration()
    if issues:
        log_error("Configuration validation failed", issues=issues)
        print("❌ Configuration issues found:")
        for issue in issues:
            print(f"  - {issue}")
        print("\nPlease fix these issues and try again.")
        return 1

    try:
        code = COMMANDS[args.command](args)
    except (DupScanError, OSError) as e:
        log_error("Command failed", command=args.command, error=str(e))
        print(f"❌ {e}", file=sys.stderr)
        return 1

    log_performance_summary()
    return code


if __name__ == "__main__":
    sys.exit(main())
