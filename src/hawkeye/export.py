"""
Report export

JSON serialization of FirmwareReport. Keys use the camelCase names of the
report viewer; dates are ISO 8601.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from .types import (
    FirmwareReport,
    PotentialIssue,
    Severity,
    StructureAnalysis,
    StructureSection,
    Vulnerability,
)


def export_filename(report: FirmwareReport) -> str:
    return f"firmware-analysis-{report.id}.json"


def _vulnerability_to_dict(vuln: Vulnerability) -> Dict[str, Any]:
    data = {
        "id": vuln.id,
        "name": vuln.name,
        "description": vuln.description,
        "severity": vuln.severity.value,
        "recommendation": vuln.recommendation,
    }
    if vuln.location is not None:
        data["location"] = vuln.location
    if vuln.details is not None:
        data["details"] = vuln.details
    return data


def report_to_dict(report: FirmwareReport) -> Dict[str, Any]:
    """Convert a report to JSON-compatible data"""
    data = {
        "id": report.id,
        "fileName": report.file_name,
        "fileSize": report.file_size,
        "analysisDate": report.analysis_date.isoformat(),
    }
    if report.entropy is not None:
        data["entropy"] = report.entropy
    if report.compression_ratio is not None:
        data["compressionRatio"] = report.compression_ratio
    if report.file_type is not None:
        data["fileType"] = report.file_type

    data["vulnerabilities"] = [_vulnerability_to_dict(v) for v in report.vulnerabilities]
    data["potentialIssues"] = [
        {
            "id": issue.id,
            "name": issue.name,
            "description": issue.description,
            "impact": issue.impact,
            "recommendation": issue.recommendation,
        }
        for issue in report.potential_issues
    ]
    data["structureAnalysis"] = {
        "sections": [
            {
                "name": s.name,
                "size": s.size,
                "offset": s.offset,
                "description": s.description,
            }
            for s in report.structure_analysis.sections
        ]
    }
    data["overallRiskScore"] = report.overall_risk_score
    data["recommendations"] = list(report.recommendations)
    return data


def report_to_json(report: FirmwareReport) -> str:
    """Pretty-printed JSON export"""
    return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False)


def report_from_dict(data: Dict[str, Any]) -> FirmwareReport:
    """Rebuild a report from exported data"""
    if not isinstance(data, dict):
        raise ValueError(f"Report must be a JSON object, got {type(data).__name__}")
    vulnerabilities = [
        Vulnerability(
            id=v["id"],
            name=v["name"],
            description=v["description"],
            severity=Severity(v["severity"]),
            recommendation=v["recommendation"],
            location=v.get("location"),
            details=v.get("details"),
        )
        for v in data.get("vulnerabilities", [])
    ]
    issues = [
        PotentialIssue(
            id=i["id"],
            name=i["name"],
            description=i["description"],
            impact=i["impact"],
            recommendation=i["recommendation"],
        )
        for i in data.get("potentialIssues", [])
    ]
    sections = [
        StructureSection(
            name=s["name"],
            size=int(s["size"]),
            offset=int(s["offset"]),
            description=s["description"],
        )
        for s in data.get("structureAnalysis", {}).get("sections", [])
    ]

    return FirmwareReport(
        id=data["id"],
        file_name=data["fileName"],
        file_size=int(data["fileSize"]),
        analysis_date=datetime.fromisoformat(data["analysisDate"].replace("Z", "+00:00")),
        entropy=data.get("entropy"),
        compression_ratio=data.get("compressionRatio"),
        file_type=data.get("fileType"),
        vulnerabilities=vulnerabilities,
        potential_issues=issues,
        structure_analysis=StructureAnalysis(sections=sections),
        overall_risk_score=int(data["overallRiskScore"]),
        recommendations=list(data.get("recommendations", [])),
    )


def export_report(report: FirmwareReport, directory: str | Path = ".") -> Path:
    """Write the report as firmware-analysis-<id>.json into directory"""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(report)
    path.write_text(report_to_json(report), encoding="utf-8")
    return path


def load_report(path: str | Path) -> FirmwareReport:
    """Read an exported report"""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Report not found: {path}")
    return report_from_dict(json.loads(path.read_text(encoding="utf-8")))
