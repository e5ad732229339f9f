"""
Analysis errors

All failures are raised to the caller of AnalysisPipeline.run(); the
progress channel never carries errors.
"""

from typing import Optional

from .types import AnalysisStep


class AnalysisError(Exception):
    """Base class for all analysis failures"""


class InputError(AnalysisError):
    """Firmware file rejected before any stage started"""


class SynthesisError(AnalysisError):
    """Internal invariant violated while assembling the report"""


class StageError(AnalysisError):
    """Failure during the work of a specific stage"""

    def __init__(self, step: AnalysisStep, message: str = ""):
        self.step = step
        super().__init__(f"Stage '{step.value}' failed: {message}" if message else f"Stage '{step.value}' failed")


class AnalysisCancelled(AnalysisError):
    """Run stopped by its cancellation token"""

    def __init__(self, step: Optional[AnalysisStep] = None):
        self.step = step
        where = f" before '{step.value}'" if step else ""
        super().__init__(f"Analysis cancelled{where}")
