"""
snippet-tracker command line interface.

Usage:
    snippet-tracker process src/ app.ts        # run a processing pass on files
    snippet-tracker report . --output AI_REPORT.md
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from snippet_tracker.core.config import TrackerConfig
from snippet_tracker.core.tracker import SnippetTracker
from snippet_tracker.documents import FileDocument
from snippet_tracker.report import iter_source_files, render_markdown, scan_project
from snippet_tracker.storage.snapshot_store import JsonSnapshotStore

_cli_log = logging.getLogger("snippet_tracker.cli")


def _collect_files(paths: list[str], config: TrackerConfig) -> tuple[list[Path], list[str]]:
    files: list[Path] = []
    missing: list[str] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(iter_source_files(path, config))
        elif path.is_file():
            files.append(path)
        else:
            missing.append(raw)
    return files, missing


def run_process(args: argparse.Namespace, config: TrackerConfig) -> int:
    root = Path(args.root).resolve()
    metadata_path = Path(config.metadata_path)
    if not metadata_path.is_absolute():
        metadata_path = root / metadata_path

    store = JsonSnapshotStore(metadata_path, root=root, staleness_days=config.staleness_days)
    tracker = SnippetTracker(config=config, store=store)

    files, missing = _collect_files(args.paths, config)
    for raw in missing:
        print(f"ERROR: File not found: {raw}", file=sys.stderr)

    changed = 0
    for file_path in files:
        if not tracker.is_supported(file_path):
            _cli_log.debug("Skipping unsupported file %s", file_path)
            continue
        try:
            document = FileDocument(file_path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"ERROR: Cannot read {file_path}: {e}", file=sys.stderr)
            missing.append(str(file_path))
            continue

        result = tracker.process(document)
        if result.changed:
            changed += 1
        for record in result.records:
            if record.action != "noop":
                print(
                    f"{file_path}: id:{record.region_id} {record.action} "
                    f"(change {record.change_percent}%, cumulative {record.cumulative_percent}%)"
                )

    print(f"Processed {len(files)} file(s), updated {changed}.")
    return 1 if missing else 0


def run_report(args: argparse.Namespace, config: TrackerConfig) -> int:
    root = Path(args.root)
    if not root.is_dir():
        print(f"ERROR: Not a directory: {root}", file=sys.stderr)
        return 1

    report = scan_project(root, config)
    if args.format == "json":
        output = json.dumps(report.to_dict(), indent=2) + "\n"
    else:
        output = render_markdown(report)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Report written to {args.output}")
    else:
        sys.stdout.write(output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snippet-tracker", description="Track provenance markers of AI-generated code"
    )
    parser.add_argument(
        "--threshold",
        type=int,
        help="Modification percentage at which markers are removed (default 70)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    process_parser = subparsers.add_parser("process", help="Update markers in files")
    process_parser.add_argument("paths", nargs="+", help="Files or directories to process")
    process_parser.add_argument(
        "--root", default=".", help="Project root holding the snapshot metadata (default: cwd)"
    )

    report_parser = subparsers.add_parser("report", help="Summarise tracked regions")
    report_parser.add_argument("root", nargs="?", default=".", help="Project root to scan")
    report_parser.add_argument("--output", "-o", help="Write the report to this file")
    report_parser.add_argument("--format", choices=["markdown", "json"], default="markdown")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = TrackerConfig.from_env(modification_threshold=args.threshold)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.command == "process":
        return run_process(args, config)
    return run_report(args, config)


if __name__ == "__main__":
    sys.exit(main())
