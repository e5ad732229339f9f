"""
Structure parser abstraction.

Maps a firmware image onto an ordered list of sections.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from .catalog import SECTION_LAYOUT
from .errors import SynthesisError
from .types import StructureAnalysis, StructureSection


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero for positive values (16.5 -> 17)"""
    return int(math.floor(value + 0.5))


class StructureParser(ABC):
    """Base class for structure parsers."""

    name = "parser"

    @abstractmethod
    def parse(self, file_size: int, content: Optional[bytes] = None) -> StructureAnalysis:
        """
        Build the section layout of a firmware image.

        Args:
            file_size: Size in bytes
            content: File content, or None when only metadata is known
        """
        pass


class FixedFractionParser(StructureParser):
    """
    Reference parser: fixed-fraction partition of the image.

    Each section size is its fraction of the file size rounded to the
    nearest byte; offsets are the running sum of preceding sizes, so
    sections never overlap or leave gaps. Rounding means the total can
    differ from file_size by up to one byte per section.
    """

    name = "fixed-fraction"

    def __init__(self, layout: Sequence[Tuple[str, float, str]] = SECTION_LAYOUT):
        self.layout = tuple(layout)

    def parse(self, file_size: int, content: Optional[bytes] = None) -> StructureAnalysis:
        if file_size < 0:
            raise SynthesisError(f"Negative file size: {file_size}")

        sections = []
        offset = 0
        for name, fraction, description in self.layout:
            size = round_half_up(file_size * fraction)
            if size < 0:
                raise SynthesisError(f"Negative size computed for section {name}")
            sections.append(StructureSection(
                name=name,
                size=size,
                offset=offset,
                description=description,
            ))
            offset += size

        return StructureAnalysis(sections=sections)
