"""Project-wide provenance report built from the markers found on disk."""

import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from snippet_tracker.core.canonicalize import canonical_lines
from snippet_tracker.core.config import TrackerConfig
from snippet_tracker.core.constants import IGNORED_DIRECTORIES
from snippet_tracker.core.parser import parse_regions

_report_log = logging.getLogger("snippet_tracker.report")


@dataclass
class RegionSummary:
    id: str | None
    kind: str
    start_line: int
    end_line: int
    percent: int
    code_lines: int


@dataclass
class FileReport:
    path: str
    total_code_lines: int
    regions: list[RegionSummary] = field(default_factory=list)

    @property
    def generated_count(self) -> int:
        return sum(1 for region in self.regions if region.kind == "generated")

    @property
    def modified_count(self) -> int:
        return sum(1 for region in self.regions if region.kind == "modified")

    @property
    def tracked_code_lines(self) -> int:
        return sum(region.code_lines for region in self.regions)


@dataclass
class ProjectReport:
    root: str
    generated_at: str
    files: list[FileReport] = field(default_factory=list)
    scanned_files: int = 0
    untracked_code_lines: int = 0

    @property
    def generated_count(self) -> int:
        return sum(f.generated_count for f in self.files)

    @property
    def modified_count(self) -> int:
        return sum(f.modified_count for f in self.files)

    @property
    def tracked_code_lines(self) -> int:
        return sum(f.tracked_code_lines for f in self.files)

    @property
    def total_code_lines(self) -> int:
        return sum(f.total_code_lines for f in self.files) + self.untracked_code_lines

    @property
    def ai_share(self) -> float:
        """Share of code lines (in %) that sit inside tracked regions."""
        if self.total_code_lines == 0:
            return 0.0
        return 100.0 * self.tracked_code_lines / self.total_code_lines

    @property
    def average_modified_percent(self) -> float:
        percents = [r.percent for f in self.files for r in f.regions if r.kind == "modified"]
        return sum(percents) / len(percents) if percents else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "generated_at": self.generated_at,
            "totals": {
                "scanned_files": self.scanned_files,
                "files": len(self.files),
                "generated_regions": self.generated_count,
                "modified_regions": self.modified_count,
                "tracked_code_lines": self.tracked_code_lines,
                "total_code_lines": self.total_code_lines,
                "ai_share": round(self.ai_share, 1),
                "average_modified_percent": round(self.average_modified_percent, 1),
            },
            "files": [
                {
                    "path": f.path,
                    "total_code_lines": f.total_code_lines,
                    "regions": [asdict(r) for r in f.regions],
                }
                for f in self.files
            ],
        }


def iter_source_files(root: Path, config: TrackerConfig) -> list[Path]:
    """Supported source files under ``root``, skipping vendored/build directories."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRECTORIES)
        for name in sorted(filenames):
            if Path(name).suffix.lower() in config.supported_extensions:
                found.append(Path(dirpath) / name)
    return found


def build_file_report(path: str, text: str) -> FileReport:
    regions = parse_regions(text)
    summaries = [
        RegionSummary(
            id=region.id,
            kind=region.kind,
            start_line=region.start_line,
            end_line=region.end_line,
            percent=region.previous_percent,
            code_lines=len(canonical_lines(region.body)),
        )
        for region in sorted(regions, key=lambda r: r.start_line)
    ]
    return FileReport(path=path, total_code_lines=len(canonical_lines(text)), regions=summaries)


def scan_project(root: str | Path, config: TrackerConfig | None = None) -> ProjectReport:
    """Scan ``root`` and summarise every file that contains at least one region."""
    config = config or TrackerConfig()
    root_path = Path(root).resolve()
    report = ProjectReport(root=str(root_path), generated_at=datetime.now().isoformat())

    for file_path in iter_source_files(root_path, config):
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            _report_log.warning("Skipping unreadable file %s: %s", file_path, e)
            continue
        report.scanned_files += 1
        file_report = build_file_report(file_path.relative_to(root_path).as_posix(), text)
        if file_report.regions:
            report.files.append(file_report)
        else:
            report.untracked_code_lines += file_report.total_code_lines

    return report


def render_markdown(report: ProjectReport) -> str:
    lines = [
        "# AI Code Provenance Report",
        "",
        f"Generated: {report.generated_at}",
        f"Root: `{report.root}`",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "|---|---|",
        f"| Scanned files | {report.scanned_files} |",
        f"| Files with tracked regions | {len(report.files)} |",
        f"| Generated regions | {report.generated_count} |",
        f"| Modified regions | {report.modified_count} |",
        f"| Tracked code lines | {report.tracked_code_lines} |",
        f"| AI share of code lines | {report.ai_share:.1f}% |",
        f"| Average modification | {report.average_modified_percent:.1f}% |",
    ]

    if report.files:
        lines += ["", "## Files", "", "| File | Generated | Modified | Tracked lines |", "|---|---|---|---|"]
        for f in report.files:
            lines.append(
                f"| `{f.path}` | {f.generated_count} | {f.modified_count} | {f.tracked_code_lines} |"
            )

        lines += ["", "## Regions", ""]
        for f in report.files:
            lines.append(f"### `{f.path}`")
            lines.append("")
            for region in f.regions:
                label = "generated" if region.kind == "generated" else f"modified ({region.percent}%)"
                lines.append(
                    f"- id `{region.id or '-'}` lines {region.start_line + 1}-{region.end_line + 1}: "
                    f"{label}, {region.code_lines} code line(s)"
                )
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"
