"""
Analyzer configuration

Stage timing, input limits and placeholder metrics. Can be loaded from a
plain Python file of module-level constants.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
import importlib.util

from .catalog import PLACEHOLDER_ENTROPY, PLACEHOLDER_COMPRESSION_RATIO
from .types import AnalysisStep


def _default_stage_delays() -> Dict[AnalysisStep, float]:
    return {
        AnalysisStep.UPLOADING: 0.8,
        AnalysisStep.ANALYZING: 1.2,
        AnalysisStep.STRUCTURING: 1.0,
        AnalysisStep.SCANNING: 1.5,
        AnalysisStep.REPORTING: 1.0,
        AnalysisStep.COMPLETE: 0.0,
    }


@dataclass
class AnalyzerConfig:
    """Analysis pipeline configuration"""
    stage_delays: Dict[AnalysisStep, float] = field(default_factory=_default_stage_delays)
    delay_scale: float = 1.0          # 0 disables the pauses (still yields)
    max_file_size: Optional[int] = 256 * 1024 * 1024  # None = unlimited
    read_content: bool = True         # Read bytes for entropy when a path is known
    placeholder_entropy: float = PLACEHOLDER_ENTROPY
    placeholder_compression_ratio: float = PLACEHOLDER_COMPRESSION_RATIO

    def __post_init__(self):
        if self.delay_scale < 0:
            raise ValueError("delay_scale must be >= 0")
        if self.max_file_size is not None and self.max_file_size < 0:
            raise ValueError("max_file_size must be >= 0")

    def delay_for(self, step: AnalysisStep) -> float:
        """Scaled pause after a stage, in seconds"""
        return max(self.stage_delays.get(step, 0.0), 0.0) * self.delay_scale


def load_config_file(config_path: str | Path) -> AnalyzerConfig:
    """
    Load configuration from Python file

    Example config file:
        ```python
        DELAY_SCALE = 0.5
        MAX_FILE_SIZE = 64 * 1024 * 1024
        READ_CONTENT = True

        STAGE_DELAYS = {
            'uploading': 0.2,
            'scanning': 2.0,
        }
        ```

    Returns:
        AnalyzerConfig object
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    spec = importlib.util.spec_from_file_location("hawkeye_config", config_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load config file: {config_path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    config = AnalyzerConfig()
    config.delay_scale = float(getattr(module, 'DELAY_SCALE', config.delay_scale))
    config.max_file_size = getattr(module, 'MAX_FILE_SIZE', config.max_file_size)
    config.read_content = bool(getattr(module, 'READ_CONTENT', config.read_content))

    # Step names as strings, e.g. {'scanning': 2.0}
    for step_name, delay in getattr(module, 'STAGE_DELAYS', {}).items():
        config.stage_delays[AnalysisStep(step_name)] = float(delay)

    config.__post_init__()
    return config
