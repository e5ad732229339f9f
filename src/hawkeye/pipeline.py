"""
Analysis Pipeline

Drives a firmware file through six stages, announcing each one on the
progress channel, and returns the synthesized report.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .config import AnalyzerConfig
from .detectors import Detector
from .errors import AnalysisCancelled, InputError, StageError
from .progress import ProgressChannel, ProgressObserver
from .structure import StructureParser
from .synthesizer import ReportSynthesizer
from .types import (
    AnalysisProgress,
    AnalysisStep,
    Findings,
    FirmwareFile,
    FirmwareReport,
    StructureAnalysis,
)

# (step, percent, message), in execution order
STAGES: List[Tuple[AnalysisStep, int, str]] = [
    (AnalysisStep.UPLOADING, 10, "Uploading firmware file..."),
    (AnalysisStep.ANALYZING, 30, "Analyzing firmware structure..."),
    (AnalysisStep.STRUCTURING, 50, "Mapping firmware sections..."),
    (AnalysisStep.SCANNING, 70, "Scanning for vulnerabilities..."),
    (AnalysisStep.REPORTING, 90, "Generating detailed report..."),
    (AnalysisStep.COMPLETE, 100, "Analysis complete!"),
]


@dataclass
class _RunState:
    """Intermediate results of a single run"""
    file: FirmwareFile
    content: Optional[bytes] = None
    entropy: Optional[float] = None
    compression_ratio: Optional[float] = None
    structure: Optional[StructureAnalysis] = None
    findings: Optional[Findings] = None
    report: Optional[FirmwareReport] = None


class AnalysisPipeline:
    """
    Staged firmware analysis.

    Stages (each entered exactly once, in order):
    - uploading: acknowledge the file
    - analyzing: entropy and compression ratio
    - structuring: section mapping
    - scanning: vulnerability detection
    - reporting: report assembly
    - complete: terminal, no work

    The pipeline is owned by its caller. Runs are independent and only
    share the progress channel.
    """

    def __init__(self, channel: Optional[ProgressChannel] = None,
                 detector: Optional[Detector] = None,
                 structure_parser: Optional[StructureParser] = None,
                 config: Optional[AnalyzerConfig] = None,
                 log_callback: Optional[Callable[[str], None]] = None):
        self.channel = channel or ProgressChannel()
        self.config = config or AnalyzerConfig()
        self.log_callback = log_callback
        self.synthesizer = ReportSynthesizer(
            detector=detector,
            structure_parser=structure_parser,
            placeholder_entropy=self.config.placeholder_entropy,
            placeholder_compression_ratio=self.config.placeholder_compression_ratio,
        )

    def _log(self, message: str) -> None:
        """Log a message via callback"""
        if self.log_callback:
            self.log_callback(message)

    def on_progress(self, observer: ProgressObserver) -> Callable[[], None]:
        """Subscribe to the shared progress channel"""
        return self.channel.subscribe(observer)

    async def run(self, file: FirmwareFile,
                  observer: Optional[ProgressObserver] = None,
                  cancel_event: Optional[asyncio.Event] = None) -> FirmwareReport:
        """
        Analyze a firmware file.

        Args:
            file: Firmware file handle
            observer: Receives this run's progress only, in addition to
                the shared channel
            cancel_event: Checked between stages; when set the run stops
                and raises AnalysisCancelled

        Returns:
            FirmwareReport

        Raises:
            InputError: file rejected, no progress emitted
            StageError: a stage failed, no further progress emitted
            AnalysisCancelled: cancel_event was set
        """
        state = _RunState(file=file, content=await self._load(file))

        self._log(f"[*] Starting analysis of {file.name} ({file.size:,} bytes)")

        for step, percent, message in STAGES:
            if cancel_event is not None and cancel_event.is_set():
                self._log(f"[!] Analysis cancelled before {step.value}")
                raise AnalysisCancelled(step)

            try:
                self._emit(AnalysisProgress(step=step, progress=percent, message=message), observer)
                if step is AnalysisStep.COMPLETE:
                    break
                await self._run_stage(step, state)
            except Exception as e:
                self._log(f"[!] Stage {step.value} failed: {e}")
                raise StageError(step, str(e)) from e

            await asyncio.sleep(self.config.delay_for(step))

        report = self.synthesizer.stamp(state.report)
        self._log(f"[+] Analysis complete: {len(report.vulnerabilities)} vulnerabilities, "
                  f"risk score {report.overall_risk_score}/10")
        return report

    async def _load(self, file: FirmwareFile) -> Optional[bytes]:
        """Validate the input and read its content if configured"""
        if file.size < 0:
            raise InputError(f"Invalid file size: {file.size}")
        if file.size == 0:
            raise InputError(f"Firmware file is empty: {file.name}")
        limit = self.config.max_file_size
        if limit is not None and file.size > limit:
            raise InputError(f"Firmware file too large: {file.size:,} bytes (limit {limit:,})")

        if not self.config.read_content or file.path is None:
            return None

        try:
            content = await self._in_executor(file.read_bytes)
        except OSError as e:
            raise InputError(f"Cannot read firmware file {file.path}: {e}") from e

        if len(content) != file.size:
            raise InputError(
                f"Firmware file changed: expected {file.size:,} bytes, read {len(content):,}"
            )
        return content

    def _emit(self, progress: AnalysisProgress,
              observer: Optional[ProgressObserver]) -> None:
        self._log(f"[*] {progress.message}")
        try:
            self.channel.emit(progress)
        finally:
            if observer is not None:
                observer(progress)

    async def _in_executor(self, func, *args):
        """Run blocking file or CPU work without stalling the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args))

    async def _run_stage(self, step: AnalysisStep, state: _RunState) -> None:
        """Work performed after a stage has been announced"""
        file = state.file
        synth = self.synthesizer

        if step is AnalysisStep.UPLOADING:
            source = "content" if state.content is not None else "metadata only"
            self._log(f"    Received {file.name} ({source})")

        elif step is AnalysisStep.ANALYZING:
            state.entropy, state.compression_ratio = await self._in_executor(synth.measure, state.content)
            self._log(f"    Entropy {state.entropy:.2f}/8.00, compression ratio {state.compression_ratio:.2f}")

        elif step is AnalysisStep.STRUCTURING:
            state.structure = synth.map_structure(file.size, state.content)
            self._log(f"    Mapped {len(state.structure.sections)} sections")

        elif step is AnalysisStep.SCANNING:
            state.findings = synth.scan(file.name, file.size, state.content)
            self._log(f"    Found {len(state.findings.vulnerabilities)} vulnerabilities, "
                      f"{len(state.findings.potential_issues)} potential issues")

        elif step is AnalysisStep.REPORTING:
            state.report = synth.assemble(
                file.name,
                file.size,
                state.findings,
                state.structure,
                state.entropy,
                state.compression_ratio,
            )


async def analyze_firmware(file: FirmwareFile, **kwargs) -> FirmwareReport:
    """One-shot analysis with a throwaway pipeline"""
    return await AnalysisPipeline(**kwargs).run(file)
