"""
hawkeye - Firmware Security Report

Staged firmware analysis pipeline producing structured security reports
(vulnerabilities, potential issues, structure layout, risk score).

Usage:
    # Command-line interface
    hawkeye analyze router.bin          # Analyze and print a summary
    hawkeye analyze router.bin --json   # JSON report on stdout

    # Python API
    from hawkeye import AnalysisPipeline, FirmwareFile
    pipeline = AnalysisPipeline()
    unsubscribe = pipeline.on_progress(print)
    report = await pipeline.run(FirmwareFile.from_path("router.bin"))
"""

__version__ = "0.1.0"

from .types import (
    Severity,
    AnalysisStep,
    Vulnerability,
    PotentialIssue,
    StructureSection,
    StructureAnalysis,
    AnalysisProgress,
    FirmwareFile,
    FirmwareReport,
)
from .errors import AnalysisError, InputError, StageError, SynthesisError, AnalysisCancelled
from .progress import ProgressChannel
from .pipeline import AnalysisPipeline, analyze_firmware
from .synthesizer import ReportSynthesizer, guess_file_type, calculate_risk_score
from .export import report_to_json, export_report, load_report

__all__ = [
    "Severity",
    "AnalysisStep",
    "Vulnerability",
    "PotentialIssue",
    "StructureSection",
    "StructureAnalysis",
    "AnalysisProgress",
    "FirmwareFile",
    "FirmwareReport",
    "AnalysisError",
    "InputError",
    "StageError",
    "SynthesisError",
    "AnalysisCancelled",
    "ProgressChannel",
    "AnalysisPipeline",
    "analyze_firmware",
    "ReportSynthesizer",
    "guess_file_type",
    "calculate_risk_score",
    "report_to_json",
    "export_report",
    "load_report",
    "__version__",
]
