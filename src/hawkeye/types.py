"""
Common types for firmware analysis
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class Severity(Enum):
    """Finding severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        """Scoring weight (low=1, medium=2, high=3)"""
        return _SEVERITY_WEIGHTS[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.weight < other.weight


_SEVERITY_WEIGHTS = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
}


class AnalysisStep(Enum):
    """Pipeline stages, in execution order"""
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    STRUCTURING = "structuring"
    SCANNING = "scanning"
    REPORTING = "reporting"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Vulnerability:
    """A detected security flaw"""
    id: str
    name: str
    description: str
    severity: Severity
    recommendation: str
    location: Optional[str] = None
    details: Optional[str] = None

    def __str__(self) -> str:
        loc = f" at {self.location}" if self.location else ""
        return f"[{self.severity.value.upper()}] {self.name}{loc}"


@dataclass(frozen=True)
class PotentialIssue:
    """A missing defensive control (not a detected flaw)"""
    id: str
    name: str
    description: str
    impact: str
    recommendation: str

    def __str__(self) -> str:
        return f"[ISSUE] {self.name}"


@dataclass(frozen=True)
class StructureSection:
    """A contiguous region of the firmware image"""
    name: str
    size: int
    offset: int
    description: str

    @property
    def end(self) -> int:
        return self.offset + self.size


@dataclass(frozen=True)
class StructureAnalysis:
    """Ordered layout of firmware sections"""
    sections: Tuple[StructureSection, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "sections", tuple(self.sections))

    @property
    def total_size(self) -> int:
        return sum(s.size for s in self.sections)


@dataclass(frozen=True)
class AnalysisProgress:
    """Progress event emitted on every stage transition"""
    step: AnalysisStep
    progress: int
    message: str

    def __str__(self) -> str:
        return f"[{self.progress:3d}%] {self.message}"


@dataclass(frozen=True)
class FirmwareFile:
    """
    Input handle for the pipeline.

    Only name and size are required. When a path is set the content can
    be read for entropy and compression measurements.
    """
    name: str
    size: int
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: str | Path) -> "FirmwareFile":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Firmware not found: {path}")
        return cls(name=path.name, size=path.stat().st_size, path=path)

    def read_bytes(self) -> Optional[bytes]:
        if self.path is None:
            return None
        return self.path.read_bytes()


def _freeze_sequences(obj) -> None:
    """Store finding sequences as tuples so frozen instances stay immutable"""
    for name in ("vulnerabilities", "potential_issues", "recommendations"):
        object.__setattr__(obj, name, tuple(getattr(obj, name)))


@dataclass(frozen=True)
class Findings:
    """Output of a detector"""
    vulnerabilities: Tuple[Vulnerability, ...] = ()
    potential_issues: Tuple[PotentialIssue, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def __post_init__(self):
        _freeze_sequences(self)


@dataclass(frozen=True)
class FirmwareReport:
    """Complete firmware analysis report"""
    id: str
    file_name: str
    file_size: int
    analysis_date: datetime
    structure_analysis: StructureAnalysis
    overall_risk_score: int
    vulnerabilities: Tuple[Vulnerability, ...] = ()
    potential_issues: Tuple[PotentialIssue, ...] = ()
    recommendations: Tuple[str, ...] = ()
    entropy: Optional[float] = None
    compression_ratio: Optional[float] = None
    file_type: Optional[str] = None

    def __post_init__(self):
        _freeze_sequences(self)

    def vulnerabilities_by_severity(self, severity: Severity) -> List[Vulnerability]:
        return [v for v in self.vulnerabilities if v.severity == severity]

    def severity_counts(self) -> Dict[Severity, int]:
        counts = {sev: 0 for sev in Severity}
        for vuln in self.vulnerabilities:
            counts[vuln.severity] += 1
        return counts

    @property
    def risk_label(self) -> str:
        from .synthesizer import risk_label
        return risk_label(self.overall_risk_score)

    def summary(self) -> str:
        lines = [
            "Firmware Analysis Report",
            "=" * 50,
            f"Report: {self.id}",
            f"Firmware: {self.file_name}",
            f"Type: {self.file_type or 'Unknown Firmware Type'}",
            f"Size: {format_file_size(self.file_size)} ({self.file_size:,} bytes)",
            f"Date: {self.analysis_date.isoformat()}",
        ]
        if self.entropy is not None:
            lines.append(f"Entropy: {self.entropy:.2f} / 8.00")
        if self.compression_ratio is not None:
            lines.append(f"Compression ratio: {self.compression_ratio:.2f}")
        lines.append(f"Risk score: {self.overall_risk_score}/10 ({self.risk_label})")

        lines.append("")
        lines.append(f"Vulnerabilities ({len(self.vulnerabilities)}):")
        for vuln in sorted(self.vulnerabilities, key=lambda v: v.severity, reverse=True):
            lines.append(f"  {vuln}")

        lines.append("")
        lines.append(f"Potential issues ({len(self.potential_issues)}):")
        for issue in self.potential_issues:
            lines.append(f"  {issue}")

        lines.append("")
        lines.append("Structure:")
        for section in self.structure_analysis.sections:
            lines.append(
                f"  0x{section.offset:08x}  {section.name:<12} {format_file_size(section.size)}"
            )

        if self.recommendations:
            lines.append("")
            lines.append("Recommendations:")
            for i, rec in enumerate(self.recommendations, 1):
                lines.append(f"  {i}. {rec}")

        return "\n".join(lines)


def format_file_size(size: int) -> str:
    """Human readable byte count"""
    if size < 1024:
        return f"{size} bytes"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"
