"""
Report Synthesizer

Assembles a FirmwareReport from file metadata, detector findings and the
structure layout. Apart from the report id and date, the result depends
only on its inputs.
"""

import dataclasses
import time
from datetime import datetime, timezone
from typing import Iterable, Optional

from .catalog import FILE_TYPES, UNKNOWN_FILE_TYPE, PLACEHOLDER_ENTROPY, PLACEHOLDER_COMPRESSION_RATIO
from .detectors import Detector, CatalogDetector
from .entropy import shannon_entropy, compression_ratio
from .errors import SynthesisError
from .structure import StructureParser, FixedFractionParser, round_half_up
from .types import (
    Findings,
    FirmwareReport,
    Severity,
    StructureAnalysis,
    Vulnerability,
)

MAX_RISK_SCORE = 10
RISK_MULTIPLIER = 1.5


def guess_file_type(file_name: str) -> str:
    """Infer the firmware type from the file extension (case-insensitive)"""
    if "." not in file_name:
        return UNKNOWN_FILE_TYPE
    extension = file_name.rsplit(".", 1)[1].lower()
    return FILE_TYPES.get(extension, UNKNOWN_FILE_TYPE)


def risk_score_from_counts(high: int, medium: int, low: int) -> int:
    """min(10, round((3*high + 2*medium + low) * 1.5)), halves rounded up"""
    if min(high, medium, low) < 0:
        raise SynthesisError("Severity counts must be non-negative")
    weighted = (
        Severity.HIGH.weight * high
        + Severity.MEDIUM.weight * medium
        + Severity.LOW.weight * low
    )
    return min(MAX_RISK_SCORE, round_half_up(weighted * RISK_MULTIPLIER))


def calculate_risk_score(vulnerabilities: Iterable[Vulnerability]) -> int:
    """Overall risk score (0-10) weighted by vulnerability severity"""
    counts = {sev: 0 for sev in Severity}
    for vuln in vulnerabilities:
        counts[vuln.severity] += 1
    return risk_score_from_counts(
        counts[Severity.HIGH], counts[Severity.MEDIUM], counts[Severity.LOW]
    )


def risk_label(score: int) -> str:
    if score <= 3:
        return "Low Risk"
    if score <= 7:
        return "Medium Risk"
    return "High Risk"


def make_report_id(now: Optional[datetime] = None) -> str:
    """report-<epoch milliseconds>"""
    millis = int(now.timestamp() * 1000) if now else int(time.time() * 1000)
    return f"report-{millis}"


class ReportSynthesizer:
    """
    Build reports from metadata plus pluggable detector and parser.

    The pipeline calls the individual steps from its stages; synthesize()
    runs them all at once.
    """

    def __init__(self, detector: Optional[Detector] = None,
                 structure_parser: Optional[StructureParser] = None,
                 placeholder_entropy: float = PLACEHOLDER_ENTROPY,
                 placeholder_compression_ratio: float = PLACEHOLDER_COMPRESSION_RATIO):
        self.detector = detector or CatalogDetector()
        self.structure_parser = structure_parser or FixedFractionParser()
        self.placeholder_entropy = placeholder_entropy
        self.placeholder_compression_ratio = placeholder_compression_ratio

    def measure(self, content: Optional[bytes]) -> tuple[float, float]:
        """Entropy and compression ratio, placeholders when content is unknown"""
        if not content:
            return self.placeholder_entropy, self.placeholder_compression_ratio
        return shannon_entropy(content), compression_ratio(content)

    def map_structure(self, file_size: int, content: Optional[bytes] = None) -> StructureAnalysis:
        return self.structure_parser.parse(file_size, content)

    def scan(self, file_name: str, file_size: int, content: Optional[bytes] = None) -> Findings:
        return self.detector.detect(file_name, file_size, content)

    def assemble(self, file_name: str, file_size: int, findings: Findings,
                 structure: StructureAnalysis, entropy: Optional[float],
                 ratio: Optional[float], now: Optional[datetime] = None) -> FirmwareReport:
        if file_size < 0:
            raise SynthesisError(f"Negative file size: {file_size}")
        for section in structure.sections:
            if section.size < 0 or section.offset < 0:
                raise SynthesisError(f"Invalid section {section.name}: size={section.size} offset={section.offset}")
        if entropy is not None and not 0.0 <= entropy <= 8.0:
            raise SynthesisError(f"Entropy out of range: {entropy}")
        if ratio is not None and not 0.0 <= ratio <= 1.0:
            raise SynthesisError(f"Compression ratio out of range: {ratio}")

        now = now or datetime.now(timezone.utc)
        return FirmwareReport(
            id=make_report_id(now),
            file_name=file_name,
            file_size=file_size,
            analysis_date=now,
            entropy=entropy,
            compression_ratio=ratio,
            file_type=guess_file_type(file_name),
            vulnerabilities=findings.vulnerabilities,
            potential_issues=findings.potential_issues,
            structure_analysis=structure,
            overall_risk_score=calculate_risk_score(findings.vulnerabilities),
            recommendations=findings.recommendations,
        )

    def stamp(self, report: FirmwareReport, now: Optional[datetime] = None) -> FirmwareReport:
        """Copy of report with id and analysis date set to completion time"""
        now = now or datetime.now(timezone.utc)
        return dataclasses.replace(report, id=make_report_id(now), analysis_date=now)

    def synthesize(self, file_name: str, file_size: int,
                   content: Optional[bytes] = None,
                   now: Optional[datetime] = None) -> FirmwareReport:
        entropy, ratio = self.measure(content)
        structure = self.map_structure(file_size, content)
        findings = self.scan(file_name, file_size, content)
        return self.assemble(file_name, file_size, findings, structure, entropy, ratio, now=now)
